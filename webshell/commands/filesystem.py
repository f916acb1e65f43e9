"""
Filesystem commands: thin wrappers around VirtualFileSystem operations.
"""

from ..output import directory, error, info, success, text
from ..virtual_fs import MAX_TREE_DEPTH, OperationError, human_readable_size
from .base import line_count, read_source, split_options


def register_filesystem_commands(registry):
    """Register navigation, listing and file commands."""

    @registry.command(
        'ls',
        description='List directory contents',
        usage='ls [path] [-l] [-a] [-h]',
        category='filesystem',
        flags=[('l', 'Use long listing format'),
               ('a', 'Show . and .. entries'),
               ('h', 'Human-readable sizes (with -l)')],
        examples=['ls', 'ls -la', 'ls /Projects', 'ls -lh ~/Documents'],
        aliases=['dir'],
    )
    def ls(args, flags, ctx):
        result = ctx.fs.ls(args[0] if args else '.', flags)
        if isinstance(result, OperationError):
            return [error(result)]

        if flags.get('l'):
            return [text(f"total {len(result)}")] + [text(entry.long) for entry in result]
        return [directory(entry.name) if entry.is_dir else text(entry.name) for entry in result]

    @registry.command(
        'cd',
        description='Change directory',
        usage='cd [path]',
        category='filesystem',
        examples=['cd /Projects', 'cd ..', 'cd ~', 'cd -'],
    )
    def cd(args, flags, ctx):
        result = ctx.fs.cd(args[0] if args else '~')
        if isinstance(result, OperationError):
            return [error(result)]
        ctx.env['PWD'] = result
        return []

    @registry.command(
        'pwd',
        description='Print working directory',
        category='filesystem',
    )
    def pwd(args, flags, ctx):
        return [text(ctx.fs.pwd())]

    @registry.command(
        'cat',
        description='Display file contents',
        usage='cat <file>...',
        category='filesystem',
        requires_args=True,
        accepts_pipe=True,
        examples=['cat README.md', 'echo hi | cat'],
    )
    def cat(args, flags, ctx):
        lines, failure = read_source(ctx, args)
        if failure:
            return [failure]
        if not lines and args:
            return [info('(empty file)')]
        return [text(line) for line in lines]

    @registry.command(
        'mkdir',
        description='Create directory',
        usage='mkdir [-p] <name>...',
        category='filesystem',
        flags=[('p', 'Create parent directories as needed')],
        requires_args=True,
        examples=['mkdir NewFolder', 'mkdir -p path/to/folder'],
    )
    def mkdir(args, flags, ctx):
        lines = []
        for path in args:
            result = ctx.fs.mkdir(path, flags)
            if isinstance(result, OperationError):
                lines.append(error(result))
            else:
                lines.append(success(f"Created directory: {path}"))
        return lines

    @registry.command(
        'touch',
        description='Create empty file or update its timestamp',
        usage='touch <file>...',
        category='filesystem',
        requires_args=True,
        examples=['touch newfile.txt', 'touch test.js'],
    )
    def touch(args, flags, ctx):
        lines = []
        for path in args:
            result = ctx.fs.touch(path)
            if isinstance(result, OperationError):
                lines.append(error(result))
            elif result.created:
                lines.append(success(f"Created file: {path}"))
            else:
                lines.append(success(f"Updated timestamp: {path}"))
        return lines

    @registry.command(
        'stat',
        description='Display file status',
        usage='stat <path>',
        category='filesystem',
        requires_args=True,
        examples=['stat README.md'],
    )
    def stat(args, flags, ctx):
        result = ctx.fs.stat(args[0])
        if isinstance(result, OperationError):
            return [error(result)]
        return [
            text(f"  File: {result.path}"),
            text(f"  Type: {result.kind.value}"
                 + (f" ({result.subtype})" if result.subtype else '')),
            text(f"  Size: {result.size}"),
            text(f"Create: {result.created or '-'}"),
            text(f"Modify: {result.modified or '-'}"),
        ]

    @registry.command(
        'file',
        description='Determine file type',
        usage='file <path>',
        category='filesystem',
        requires_args=True,
        examples=['file README.md', 'file image.png'],
    )
    def file(args, flags, ctx):
        result = ctx.fs.stat(args[0])
        if isinstance(result, OperationError):
            return [error(result)]
        description = result.kind.value
        if result.subtype:
            description += f" ({result.subtype})"
        return [text(f"{args[0]}: {description}")]

    @registry.command(
        'find',
        description='Search for files',
        usage='find [path] [-name <pattern>] [-type f|d] [-maxdepth N]',
        category='filesystem',
        flags=[('name', 'Match names against a glob pattern'),
               ('type', 'Filter by type (f=file, d=directory)'),
               ('maxdepth', 'Descend at most N levels')],
        examples=['find . -name "*.js"', 'find /Projects -type d', 'find -name README'],
    )
    def find(args, flags, ctx):
        options, positional = split_options(ctx.command.raw_args, ('-name', '-type', '-maxdepth'))

        kind = options.get('-type')
        if kind not in (None, 'f', 'd'):
            return [error(f"find: Unknown argument to -type: {kind}")]

        max_depth = None
        if '-maxdepth' in options:
            try:
                max_depth = int(options['-maxdepth'])
            except ValueError:
                return [error(f"find: invalid -maxdepth value: {options['-maxdepth']}")]

        result = ctx.fs.find(positional[0] if positional else '.',
                             options.get('-name', '*'), type=kind, max_depth=max_depth)
        if isinstance(result, OperationError):
            return [error(result)]
        if not result:
            return [info('No matches found')]
        return [text(path) for path in result]

    @registry.command(
        'tree',
        description='Display directory tree',
        usage='tree [path] [-L <level>]',
        category='filesystem',
        flags=[('L', 'Max display depth')],
        examples=['tree', 'tree /Projects', 'tree -L 2'],
    )
    def tree(args, flags, ctx):
        options, positional = split_options(ctx.command.raw_args, ('-L',))
        max_depth = MAX_TREE_DEPTH
        if '-L' in options:
            try:
                max_depth = int(options['-L'])
            except ValueError:
                return [error(f"tree: invalid level, must be greater than 0: {options['-L']}")]

        result = ctx.fs.tree(positional[0] if positional else '.', max_depth)
        if isinstance(result, OperationError):
            return [error(result)]

        folders = sum(1 for line in result.lines if line.is_dir)
        lines = [text(result.root)]
        lines.extend(directory(line.text) if line.is_dir else text(line.text)
                     for line in result.lines)
        lines.append(text(''))
        lines.append(text(f"{folders} directories, {len(result.lines) - folders} files"))
        return lines

    @registry.command(
        'head',
        description='Output the first part of a file',
        usage='head [-n lines] <file>',
        category='filesystem',
        flags=[('n', 'Number of lines to show (default: 10)')],
        accepts_pipe=True,
        examples=['head file.txt', 'head -n 20 log.txt', 'cat log.txt | head -5'],
    )
    def head(args, flags, ctx):
        count, paths = line_count(ctx.command.raw_args)
        lines, failure = read_source(ctx, paths)
        if failure:
            return [failure]
        return [text(line) for line in lines[:count]]

    @registry.command(
        'tail',
        description='Output the last part of a file',
        usage='tail [-n lines] <file>',
        category='filesystem',
        flags=[('n', 'Number of lines to show (default: 10)')],
        accepts_pipe=True,
        examples=['tail file.txt', 'tail -n 20 log.txt'],
    )
    def tail(args, flags, ctx):
        count, paths = line_count(ctx.command.raw_args)
        lines, failure = read_source(ctx, paths)
        if failure:
            return [failure]
        return [text(line) for line in (lines[-count:] if count else [])]

    @registry.command(
        'wc',
        description='Print line, word, and character counts',
        usage='wc [-l] [-w] [-c] [file]',
        category='filesystem',
        flags=[('l', 'Print line count'),
               ('w', 'Print word count'),
               ('c', 'Print character count')],
        accepts_pipe=True,
        examples=['wc file.txt', 'wc -l file.txt', 'ls | wc -l'],
    )
    def wc(args, flags, ctx):
        lines, failure = read_source(ctx, args)
        if failure:
            return [failure]

        content = '\n'.join(lines)
        show_all = not (flags.get('l') or flags.get('w') or flags.get('c'))
        counts = []
        if show_all or flags.get('l'):
            counts.append(len(lines))
        if show_all or flags.get('w'):
            counts.append(len(content.split()))
        if show_all or flags.get('c'):
            counts.append(len(content))

        label = f" {args[0]}" if args else ''
        return [text(' '.join(str(count) for count in counts) + label)]

    @registry.command(
        'du',
        description='Estimate file space usage',
        usage='du [path] [-h]',
        category='filesystem',
        flags=[('h', 'Human-readable sizes')],
        examples=['du', 'du -h /Projects'],
    )
    def du(args, flags, ctx):
        path = args[0] if args else '.'
        size = ctx.fs.disk_usage(path)
        if isinstance(size, OperationError):
            return [error(size)]
        shown = human_readable_size(size) if flags.get('h') else str(size)
        return [text(f"{shown}\t{path}")]
