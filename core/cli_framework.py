"""CLI application framework.

Provides a declarative way to build CLI applications with:
- Command registration via decorators
- Nested command groups (e.g. ``days validate``)
- Consistent error handling and exit codes
- Common arguments (--profile, --verbose, --quiet, --output)
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from .cli_errors import CLIError, ExitCode, handle_error
from .cli_output import OutputConfig, OutputFormat, OutputWriter

CommandFunc = Callable[[argparse.Namespace], int]

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class Argument:
    """Definition of a CLI argument."""
    name_or_flags: tuple
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CommandDef:
    """Definition of a CLI command."""
    name: str
    func: CommandFunc
    help: str = ""
    description: str = ""
    arguments: List[Argument] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    parent: Optional[str] = None


def configure_logging(verbose: bool = False, stream=None) -> None:
    """Route log records to stderr; DEBUG when verbose, WARNING otherwise."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=stream or sys.stderr,
        force=True,
    )


class CLIApp:
    """Declarative argparse application.

    Example usage:
        app = CLIApp("sessions", "Practice session tools")

        @app.command("expand", help="List occurrences")
        @app.argument("--file", required=True)
        def cmd_expand(args):
            ...
            return 0

        if __name__ == "__main__":
            app.main()
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        *,
        version: Optional[str] = None,
        epilog: Optional[str] = None,
        add_common_args: bool = True,
    ):
        self.name = name
        self.description = description
        self.version = version
        self.epilog = epilog
        self.add_common_args = add_common_args

        self._commands: Dict[str, CommandDef] = {}
        self._groups: Dict[str, "CommandGroup"] = {}
        self._parser: Optional[argparse.ArgumentParser] = None
        self._pending_arguments: List[Argument] = []

    def command(
        self,
        name: str,
        *,
        help: str = "",
        description: str = "",
        aliases: Optional[List[str]] = None,
    ) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator to register a top-level command."""
        def decorator(func: CommandFunc) -> CommandFunc:
            # @argument decorators run first (bottom-up), so collect them here
            arguments = list(reversed(self._pending_arguments))
            self._pending_arguments.clear()
            self._commands[name] = CommandDef(
                name=name,
                func=func,
                help=help,
                description=description or help,
                arguments=arguments,
                aliases=aliases or [],
            )
            return func
        return decorator

    def argument(self, *name_or_flags: str, **kwargs: Any) -> Callable[[CommandFunc], CommandFunc]:
        """Decorator to add an argument to the next command.

        Must be placed BELOW the @command decorator.
        """
        def decorator(func: CommandFunc) -> CommandFunc:
            self._pending_arguments.append(Argument(name_or_flags, kwargs))
            return func
        return decorator

    def group(self, name: str, *, help: str = "", description: str = "") -> "CommandGroup":
        """Create a command group for nested commands."""
        group = CommandGroup(self, name, help=help, description=description)
        self._groups[name] = group
        return group

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog=self.name,
            description=self.description,
            epilog=self.epilog,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        if self.version:
            parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {self.version}")
        if self.add_common_args:
            self._add_common_arguments(parser)

        if self._commands or self._groups:
            subparsers = parser.add_subparsers(dest="command", metavar="<command>")
            for group_name, group in self._groups.items():
                group_parser = subparsers.add_parser(
                    group_name, help=group.help, description=group.description
                )
                group._build_subparsers(group_parser)
            for cmd_def in self._commands.values():
                if cmd_def.parent is not None:
                    continue
                cmd_parser = subparsers.add_parser(
                    cmd_def.name,
                    help=cmd_def.help,
                    description=cmd_def.description,
                    aliases=cmd_def.aliases,
                )
                self._add_command_arguments(cmd_parser, cmd_def)
                if self.add_common_args:
                    self._add_common_arguments(cmd_parser)
                cmd_parser.set_defaults(_cmd_func=cmd_def.func)

        self._parser = parser
        return parser

    def _add_common_arguments(self, parser: argparse.ArgumentParser) -> None:
        # SUPPRESS keeps a value given before the subcommand from being reset
        # by the subparser's copy of the same flag.
        parser.add_argument("--profile", "-p", default=argparse.SUPPRESS,
                            help="Config profile name ([sessions.<profile>] section)")
        parser.add_argument("--verbose", "-v", action="store_true", default=argparse.SUPPRESS,
                            help="Enable debug logging")
        parser.add_argument("--quiet", "-q", action="store_true", default=argparse.SUPPRESS,
                            help="Suppress non-essential output")
        parser.add_argument(
            "--output", "-o",
            choices=[f.value for f in OutputFormat],
            default=argparse.SUPPRESS,
            help="Output format (default: text)",
        )

    @staticmethod
    def _add_command_arguments(parser: argparse.ArgumentParser, cmd_def: CommandDef) -> None:
        for arg in cmd_def.arguments:
            parser.add_argument(*arg.name_or_flags, **arg.kwargs)

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        """Parse argv, run the selected command and return its exit code."""
        parser = self._parser or self.build_parser()
        args = parser.parse_args(argv)

        verbose = bool(getattr(args, "verbose", False))
        configure_logging(verbose)
        args.verbose = verbose
        args.quiet = bool(getattr(args, "quiet", False))
        args.profile = getattr(args, "profile", None)
        args.output = getattr(args, "output", OutputFormat.TEXT.value)
        args._output = OutputWriter(
            OutputConfig(format=OutputFormat(args.output), verbose=verbose, quiet=args.quiet)
        )

        cmd_func = getattr(args, "_cmd_func", None)
        if cmd_func is None:
            parser.print_help()
            return int(ExitCode.USAGE)

        try:
            return int(cmd_func(args))
        except CLIError as e:
            return handle_error(e, verbose=verbose)
        except KeyboardInterrupt as e:
            return handle_error(e, verbose=verbose)
        except Exception as e:
            return handle_error(e, verbose=verbose)

    def main(self, argv: Optional[Sequence[str]] = None) -> None:
        """Run the CLI and exit with the return code."""
        sys.exit(self.run(argv))


class CommandGroup:
    """A group of related commands (e.g. ``days`` holding parse/validate/format)."""

    def __init__(self, app: CLIApp, name: str, *, help: str = "", description: str = ""):
        self.app = app
        self.name = name
        self.help = help
        self.description = description or help
        self._commands: Dict[str, CommandDef] = {}

    def command(
        self,
        name: str,
        *,
        help: str = "",
        description: str = "",
        aliases: Optional[List[str]] = None,
    ) -> Callable[[CommandFunc], CommandFunc]:
        def decorator(func: CommandFunc) -> CommandFunc:
            arguments = list(reversed(self.app._pending_arguments))
            self.app._pending_arguments.clear()
            cmd_def = CommandDef(
                name=name,
                func=func,
                help=help,
                description=description or help,
                arguments=arguments,
                aliases=aliases or [],
                parent=self.name,
            )
            self._commands[name] = cmd_def
            self.app._commands[f"{self.name}.{name}"] = cmd_def
            return func
        return decorator

    def argument(self, *name_or_flags: str, **kwargs: Any) -> Callable[[CommandFunc], CommandFunc]:
        return self.app.argument(*name_or_flags, **kwargs)

    def _build_subparsers(self, parser: argparse.ArgumentParser) -> None:
        subparsers = parser.add_subparsers(dest=f"{self.name}_cmd", metavar="<subcommand>")
        for cmd_name, cmd_def in self._commands.items():
            cmd_parser = subparsers.add_parser(
                cmd_name,
                help=cmd_def.help,
                description=cmd_def.description,
                aliases=cmd_def.aliases,
            )
            self.app._add_command_arguments(cmd_parser, cmd_def)
            if self.app.add_common_args:
                self.app._add_common_arguments(cmd_parser)
            cmd_parser.set_defaults(_cmd_func=cmd_def.func)
