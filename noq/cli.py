#!/usr/bin/env python3
"""
NOQ Command-Line Interface

Provides interactive REPL, script execution, and pipe/filter modes.

Usage:
    noq                              # Start REPL
    noq proof.noq                    # Run script
    noq -e "shape f(x)"              # Run a single command
    noq -r rules.noq                 # REPL with rules preloaded
    cat proof.noq | noq              # Filter mode

Script Format (.noq files):
    # Comments start with #
    rule swap swap(pair(a, b)) = pair(b, a)
    shape foo(swap(pair(x, y)))
    apply swap
    done

REPL Commands:
    :help              Show help
    :rules             List defined rules
    :term              Show the term being shaped
    :trace on|off      Toggle printing the shaping chain on done
    :quit              Exit
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .engine import Apply, CommandResult, DefineRule, Done, Session, Shape, format_chain
from .errors import NoqError, RuleAlreadyExists

# Try to import readline for better REPL experience
try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False

PROMPT = "> "


def format_result(result: CommandResult, trace: bool = False) -> str:
    """Render what a successful command reports."""
    command = result.command
    if isinstance(command, DefineRule):
        return f"Defined rule {command.name}: {result.rule}"
    if isinstance(command, Shape):
        return f"Shaping {result.term}"
    if isinstance(command, Apply):
        return str(result.term)
    if isinstance(command, Done):
        output = f"Finished shaping expression {result.term}"
        if trace and result.steps:
            output += "\n" + format_chain(result.term, result.steps)
        return output
    raise TypeError(f"Not a command: {command!r}")


def format_error(error: NoqError, prompt: Optional[str] = None) -> str:
    """
    Render an error for interactive use.

    With a prompt, errors that carry a location get a caret line pointing
    at the offending column of the line typed after that prompt.
    """
    lines = []
    if prompt is not None and error.loc is not None:
        lines.append(" " * (len(prompt) + error.loc.col) + "^")
    lines.append(f"ERROR: {error.message}")
    if isinstance(error, RuleAlreadyExists) and error.existing_loc is not None:
        lines.append(f"NOTE: {error.name} was first defined at {error.existing_loc}")
    return "\n".join(lines)


def is_blank(line: str) -> bool:
    """Blank lines and # comments are skipped in every mode."""
    line = line.strip()
    return not line or line.startswith("#")


class NoqCompleter:
    """Tab completer for the NOQ REPL."""

    COMMANDS = [":help", ":quit", ":exit", ":q", ":rules", ":term", ":trace"]
    KEYWORDS = ["rule", "shape", "apply", "done"]
    TRACE_OPTIONS = ["on", "off"]

    def __init__(self, repl: 'NoqREPL'):
        self.repl = repl
        self.matches: List[str] = []

    def complete(self, text: str, state: int) -> Optional[str]:
        """Return the next possible completion for 'text'."""
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)

        try:
            return self.matches[state]
        except IndexError:
            return None

    def _get_matches(self, text: str, line: str) -> List[str]:
        """Get list of matches for the current input."""
        line = line.lstrip()

        if line.startswith(":trace "):
            return [t for t in self.TRACE_OPTIONS if t.startswith(text)]

        if line.startswith("apply "):
            return [name for name in self.repl.session.rules if name.startswith(text)]

        if text.startswith(":"):
            return [c for c in self.COMMANDS if c.startswith(text)]

        if " " not in line:
            return [k for k in self.KEYWORDS if k.startswith(text)]

        return []


class NoqREPL:
    """Interactive REPL around a single Session."""

    def __init__(self):
        self.session = Session()
        self.trace = False
        self.running = True
        self.history_file = Path.home() / ".noq_history"

    def setup_readline(self):
        """Load history and install tab completion for an interactive loop."""
        if HAS_READLINE:
            try:
                readline.read_history_file(self.history_file)
            except (FileNotFoundError, OSError):
                pass
            readline.set_history_length(1000)

            self.completer = NoqCompleter(self)
            readline.set_completer(self.completer.complete)
            readline.parse_and_bind("tab: complete")
            readline.set_completer_delims(" \t\n(),=")

    def save_history(self):
        """Save readline history."""
        if HAS_READLINE:
            try:
                readline.write_history_file(self.history_file)
            except OSError as e:
                print(f"Could not save history to {self.history_file}: {e}", file=sys.stderr)

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        Returns a message to print, or None.
        """
        parts = line[1:].split(None, 1)
        if not parts:
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd in ("quit", "exit", "q"):
            self.running = False
            return None

        elif cmd == "rules":
            rules = self.session.list_rules()
            if not rules:
                return "No rules defined"
            return "\n".join(rules)

        elif cmd == "term":
            if not self.session.shaping:
                return "Not shaping"
            return str(self.session.current_term)

        elif cmd == "trace":
            if arg.lower() in ("on", "true", "1"):
                self.trace = True
            elif arg.lower() in ("off", "false", "0"):
                self.trace = False
            else:
                self.trace = not self.trace
            return f"Tracing {'enabled' if self.trace else 'disabled'}"

        else:
            return f"Unknown command: {cmd}. Type :help for help."

    def help_text(self) -> str:
        """Return help text."""
        return """NOQ REPL Commands:
  :help              Show this help
  :rules             List all defined rules
  :term              Show the term being shaped
  :trace on|off      Toggle printing the shaping chain on done
  :quit              Exit

Syntax:
  rule NAME HEAD = BODY      Define a rule, e.g. rule swap swap(pair(a, b)) = pair(b, a)
  shape TERM                 Start shaping a term
  apply NAME                 Rewrite every outermost match of a rule once
  done                       Finish shaping
"""

    def run_line(self, line: str, file_path: str = "<stdin>", row: int = 1) -> Optional[str]:
        """
        Run one line, letting NoqError propagate.

        Returns the output to print, or None.
        """
        if is_blank(line):
            return None

        if line.strip().startswith(":"):
            return self.handle_command(line.strip())

        result = self.session.process_line(line, file_path=file_path, row=row)
        return format_result(result, self.trace)

    def process_line(self, line: str, prompt: Optional[str] = None) -> Optional[str]:
        """
        Process a single line of input, reporting errors as text.

        Returns the result to print, or None.
        """
        try:
            return self.run_line(line)
        except NoqError as e:
            return format_error(e, prompt)

    def run(self):
        """Run the REPL loop."""
        self.setup_readline()
        print("NOQ - interactive equational rewriting")
        print("Type :help for help, :quit to exit")
        print()

        while self.running:
            try:
                line = input(PROMPT)
            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                print()
                continue

            try:
                output = self.run_line(line)
            except NoqError as e:
                print(format_error(e, PROMPT), file=sys.stderr)
                continue
            if output:
                print(output)

        self.save_history()


class ScriptRunner:
    """
    Runs noq scripts, single commands and piped input.

    Scripts stop at the first failing line. Piped input is a read loop like
    the REPL: each error is reported and the next line still runs.
    """

    def __init__(self):
        self.repl = NoqREPL()

    def run_lines(self, lines: List[str], file_path: str, quiet: bool = False,
                  keep_going: bool = False) -> int:
        """
        Run lines of commands.

        Args:
            lines: Command lines, blank lines and comments allowed
            file_path: Name used in locations of reported errors
            quiet: If True, don't print command results
            keep_going: If True, report errors and continue with the next line

        Returns:
            Exit code (0 when no line failed)
        """
        failed = False
        for row, line in enumerate(lines, 1):
            try:
                output = self.repl.run_line(line, file_path=file_path, row=row)
            except NoqError as e:
                where = e.loc if e.loc is not None else f"{file_path}:{row}"
                print(f"{where}: ERROR: {e.message}", file=sys.stderr)
                if not keep_going:
                    return 1
                failed = True
                continue
            if output and not quiet:
                print(output)
            if not self.repl.running:
                break
        return 1 if failed else 0

    def run_script(self, path: Path, quiet: bool = False) -> int:
        """Run a script file."""
        try:
            lines = path.read_text().splitlines()
        except OSError as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            return 1
        return self.run_lines(lines, str(path), quiet=quiet)

    def run_expression(self, line: str) -> int:
        """Run a single command line."""
        return self.run_lines([line], "<expr>")

    def run_stdin(self) -> int:
        """Read command lines from stdin and run them."""
        return self.run_lines(sys.stdin.read().splitlines(), "<stdin>", keep_going=True)


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="noq",
        description="NOQ - interactive equational rewriting",
        epilog="Examples:\n"
               "  noq                               Start REPL\n"
               "  noq proof.noq                     Run script\n"
               "  noq -e 'shape f(x)'               Run a single command\n"
               "  noq -r rules.noq                  REPL with rules\n"
               "  cat proof.noq | noq               Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "script",
        nargs="?",
        help="Script file to run (.noq)"
    )

    parser.add_argument(
        "-r", "--rules",
        action="append",
        default=[],
        help="Run a file of commands first, e.g. rule definitions (can be specified multiple times)"
    )

    parser.add_argument(
        "-e", "--exec",
        dest="line",
        help="Run a single command line"
    )

    parser.add_argument(
        "-t", "--trace",
        action="store_true",
        help="Print the shaping chain when a shaping is done"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (suppress non-essential output)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args()

    runner = ScriptRunner()
    runner.repl.trace = args.trace

    for rules_file in args.rules:
        # Rule files are run silently; only errors are reported
        if runner.run_script(Path(rules_file), quiet=True):
            sys.exit(1)
        if not args.quiet:
            print(f"Loaded rules from {rules_file}", file=sys.stderr)

    if args.script:
        sys.exit(runner.run_script(Path(args.script)))

    elif args.line:
        sys.exit(runner.run_expression(args.line))

    elif not sys.stdin.isatty():
        sys.exit(runner.run_stdin())

    else:
        runner.repl.run()


if __name__ == "__main__":
    main()
