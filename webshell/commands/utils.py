"""
General utility commands: echo, help, calc, text filters.
"""

import ast
import asyncio
import json
import math
import operator
import re

from ..output import clear as clear_line
from ..output import error, exit_marker, info, success, text
from .base import read_source

_CALC_CHARS = re.compile(r'^[\d+\-*/%().\s]+$')

MAX_RESULT_DIGITS = 10000


def _power(base, exponent):
    """``operator.pow`` that refuses results longer than MAX_RESULT_DIGITS."""
    if exponent > 1 and abs(base) > 1:
        if exponent * math.log10(abs(base)) > MAX_RESULT_DIGITS:
            raise ValueError("Result too large")
    return operator.pow(base, exponent)


_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: _power,
}

_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

MAX_SLEEP = 60


def evaluate_expression(expression: str):
    """
    Evaluate an arithmetic expression without eval().

    Only numbers, parentheses and the + - * / // % ** operators are accepted.
    """
    if not _CALC_CHARS.match(expression):
        raise ValueError('Invalid characters in expression')

    def visit(node):
        if isinstance(node, ast.Expression):
            return visit(node.body)
        if isinstance(node, ast.Constant) and type(node.value) in (int, float):
            return node.value
        if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
            return _BINARY_OPERATORS[type(node.op)](visit(node.left), visit(node.right))
        if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
            return _UNARY_OPERATORS[type(node.op)](visit(node.operand))
        raise ValueError('Unsupported expression')

    try:
        tree = ast.parse(expression.strip(), mode='eval')
    except SyntaxError:
        raise ValueError('Invalid expression')

    result = visit(tree)
    if isinstance(result, float) and result.is_integer():
        return int(result)
    return result


def register_utility_commands(registry):
    """Register general purpose commands."""

    @registry.command(
        'echo',
        description='Display a line of text',
        usage='echo [text]',
        category='utils',
        examples=['echo Hello World', 'echo $USER'],
    )
    def echo(args, flags, ctx):
        words = ctx.command.raw_args if ctx.command else args
        return [text(' '.join(words))]

    @registry.command(
        'clear',
        description='Clear the terminal screen',
        category='utils',
        aliases=['cls'],
    )
    def clear(args, flags, ctx):
        return [clear_line()]

    @registry.command(
        'exit',
        description='Close the terminal',
        category='utils',
        aliases=['quit', 'logout'],
    )
    def exit_(args, flags, ctx):
        if ctx.capabilities.has('window'):
            ctx.capabilities.window.close_app('terminal')
        return [info('Goodbye!'), exit_marker()]

    @registry.command(
        'help',
        description='Display help information',
        usage='help [command]',
        category='utils',
        examples=['help', 'help ls'],
    )
    def help_(args, flags, ctx):
        if args:
            descriptor = ctx.registry.get_command(args[0])
            if descriptor is None:
                return [error(f"help: no help available for '{args[0]}'")]
            return descriptor.help_lines()

        lines = [info('Available commands:'), text('')]
        for category in ctx.registry.get_categories():
            lines.append(success(f"{category.upper()}:"))
            for descriptor in ctx.registry.get_commands_by_category(category):
                lines.append(text(f"  {descriptor.name:<12} {descriptor.description}"))
            lines.append(text(''))
        lines.append(info('Type "help <command>" or "<command> --help" for details'))
        return lines

    @registry.command(
        'man',
        description='Display the manual page for a command',
        usage='man <command>',
        category='utils',
        requires_args=True,
        examples=['man ls', 'man help'],
    )
    def man(args, flags, ctx):
        descriptor = ctx.registry.get_command(args[0])
        if descriptor is None:
            return [error(f"No manual entry for {args[0]}")]

        summary = descriptor.description or 'No description available'
        lines = [
            success(f"{descriptor.name.upper()}(1)"),
            text(''),
            info('NAME'),
            text(f"    {descriptor.name} - {summary}"),
            text(''),
            info('SYNOPSIS'),
            text(f"    {descriptor.usage}"),
        ]
        if descriptor.aliases:
            lines.extend([text(''), info('ALIASES'),
                          text(f"    {', '.join(descriptor.aliases)}")])
        if descriptor.flags:
            lines.extend([text(''), info('OPTIONS')])
            for spec in descriptor.flags:
                lines.append(text(f"    -{spec.flag}"))
                lines.append(text(f"        {spec.description}"))
        if descriptor.examples:
            lines.extend([text(''), info('EXAMPLES')])
            lines.extend(text(f"    $ {example}") for example in descriptor.examples)
        return lines

    @registry.command(
        'reset',
        description='Reset the terminal to its initial state',
        category='utils',
    )
    def reset(args, flags, ctx):
        ctx.fs.cd('~')
        ctx.env['PWD'] = ctx.fs.pwd()
        return [clear_line(), success('Terminal reset to initial state')]

    @registry.command(
        'which',
        description='Locate a command',
        usage='which <command>...',
        category='utils',
        requires_args=True,
    )
    def which(args, flags, ctx):
        lines = []
        for name in args:
            if name in ctx.aliases:
                lines.append(text(f"{name}: aliased to {ctx.aliases[name]}"))
            elif ctx.registry.has_command(name):
                lines.append(text(f"/usr/bin/{ctx.registry.get_command(name).name}"))
            else:
                lines.append(error(f"which: no {name} in ({ctx.env.get('PATH', '')})"))
        return lines

    @registry.command(
        'type',
        description='Describe how a name would be interpreted',
        usage='type <name>...',
        category='utils',
        requires_args=True,
    )
    def type_(args, flags, ctx):
        lines = []
        for name in args:
            descriptor = ctx.registry.get_command(name)
            if name in ctx.aliases:
                lines.append(text(f"{name} is aliased to `{ctx.aliases[name]}'"))
            elif descriptor is not None:
                lines.append(text(f"{name} is a shell builtin ({descriptor.category}): "
                                  f"{descriptor.description}"))
            else:
                lines.append(error(f"type: {name}: not found"))
        return lines

    @registry.command(
        'calc',
        description='Evaluate an arithmetic expression',
        usage='calc <expression>',
        category='utils',
        requires_args=True,
        examples=['calc 2 + 2', 'calc (10 - 4) * 3', 'calc 2 ** 10'],
    )
    def calc(args, flags, ctx):
        expression = ' '.join(ctx.command.raw_args)
        try:
            result = evaluate_expression(expression)
        except (ValueError, ArithmeticError) as exc:
            return [error(f"calc: {exc}")]
        return [info(f"{expression} ="), success(result)]

    @registry.command(
        'grep',
        description='Print lines matching a pattern',
        usage='grep [-i] [-v] [-n] <pattern> [file]...',
        category='utils',
        flags=[('i', 'Ignore case'),
               ('v', 'Select non-matching lines'),
               ('n', 'Prefix each line with its line number')],
        requires_args=True,
        examples=['ls | grep js', 'grep -i todo notes.txt', 'history | grep cd'],
    )
    def grep(args, flags, ctx):
        pattern, paths = args[0], args[1:]
        try:
            regex = re.compile(pattern, re.IGNORECASE if flags.get('i') else 0)
        except re.error as exc:
            return [error(f"grep: invalid pattern '{pattern}': {exc}")]

        lines, failure = read_source(ctx, paths)
        if failure:
            return [failure]

        invert = bool(flags.get('v'))
        matched = []
        for number, line in enumerate(lines, 1):
            if bool(regex.search(line)) != invert:
                matched.append(text(f"{number}:{line}" if flags.get('n') else line))
        return matched

    @registry.command(
        'sort',
        description='Sort lines of text',
        usage='sort [-r] [-n] [-u] [file]',
        category='utils',
        flags=[('r', 'Reverse the result'),
               ('n', 'Compare numerically'),
               ('u', 'Output only unique lines')],
        accepts_pipe=True,
        examples=['ls | sort -r', 'sort -n numbers.txt'],
    )
    def sort(args, flags, ctx):
        lines, failure = read_source(ctx, args)
        if failure:
            return [failure]

        if flags.get('u'):
            lines = list(dict.fromkeys(lines))
        if flags.get('n'):
            def key(line):
                match = re.match(r'\s*(-?\d+(?:\.\d+)?)', line)
                return (float(match.group(1)) if match else 0.0, line)
        else:
            key = None
        return [text(line) for line in sorted(lines, key=key, reverse=bool(flags.get('r')))]

    @registry.command(
        'json',
        description='Format and display JSON data',
        usage='json <file|text>',
        category='utils',
        requires_args=True,
        accepts_pipe=True,
        examples=['json data.json', 'json \'{"name": "value"}\'', 'cat data.json | json'],
    )
    def json_(args, flags, ctx):
        source = ' '.join(ctx.command.raw_args) if args else ''
        if not source:
            source = '\n'.join(ctx.pipe_lines())
        elif source.lower().endswith('.json') and '{' not in source:
            lines, failure = read_source(ctx, [source])
            if failure:
                return [failure]
            source = '\n'.join(lines)

        try:
            data = json.loads(source)
        except ValueError as exc:
            return [error(f"json: {exc}")]
        return [text(line) for line in json.dumps(data, indent=2).split('\n')]

    @registry.command(
        'seq',
        description='Print a sequence of numbers',
        usage='seq [first [step]] last',
        category='utils',
        requires_args=True,
        examples=['seq 5', 'seq 2 10', 'seq 10 -2 1'],
    )
    def seq(args, flags, ctx):
        numbers = ctx.command.raw_args
        try:
            values = [int(value) for value in numbers]
        except ValueError:
            return [error(f"seq: invalid argument: {' '.join(numbers)}")]

        if len(values) == 1:
            first, step, last = 1, 1, values[0]
        elif len(values) == 2:
            first, step, last = values[0], 1, values[1]
        elif len(values) == 3:
            first, step, last = values
        else:
            return [error('seq: usage: seq [first [step]] last')]
        if step == 0:
            return [error('seq: step must not be zero')]

        stop = last + 1 if step > 0 else last - 1
        return [text(str(value)) for value in range(first, stop, step)]

    @registry.command(
        'sleep',
        description='Pause for a number of seconds',
        usage='sleep <seconds>',
        category='utils',
        requires_args=True,
    )
    async def sleep(args, flags, ctx):
        try:
            seconds = float(args[0])
        except ValueError:
            return [error(f"sleep: invalid time interval '{args[0]}'")]
        await asyncio.sleep(max(0.0, min(seconds, MAX_SLEEP)))
        return []
