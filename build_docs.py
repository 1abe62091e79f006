# build_docs.py
import argparse
import logging
import os
import shlex
import subprocess
import sys
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "apidoc"


def default_command() -> str:
    return os.environ.get("DOCS_BUILD_COMMAND", DEFAULT_COMMAND)


@dataclass(frozen=True)
class BuildOptions:
    """
    Options bundle handed to the documentation generator
    """
    src: Tuple[str, ...] = ("example",)
    dest: str = "dev-output"
    template: str = "template"
    verbose: bool = True
    debug: bool = True
    colorize: bool = True
    command: str = field(default_factory=default_command)

    def __post_init__(self):
        # a bare string would otherwise be split into characters
        if isinstance(self.src, (str, os.PathLike)):
            object.__setattr__(self, "src", (os.fspath(self.src),))
        else:
            object.__setattr__(self, "src", tuple(os.fspath(s) for s in self.src))


def build_command(options: BuildOptions) -> List[str]:
    """
    Compose the generator command line (apidoc-compatible flags)
    """
    cmd = shlex.split(options.command)
    for src in options.src:
        cmd += ["-i", src]
    cmd += ["-o", os.fspath(options.dest)]
    if options.template:
        cmd += ["-t", os.fspath(options.template)]
    if options.verbose:
        cmd.append("-v")
    if options.debug:
        cmd.append("--debug")
    if not options.colorize:
        cmd.append("--no-color")
    return cmd


def create_doc(options: BuildOptions) -> bool:
    """
    Regenerate the documentation from the current source and template files.

    Returns True on success and False on failure; generator problems are
    logged, not raised.
    """
    cmd = build_command(options)
    logger.debug("Running: %s", shlex.join(cmd))
    try:
        proc = subprocess.run(cmd, check=False)
    except OSError as e:
        logger.error("❌ Could not run documentation generator %r: %s", cmd[0], e)
        return False

    if proc.returncode != 0:
        logger.error("❌ Documentation generator exited with code %d", proc.returncode)
        return False
    return True


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build the documentation once.")
    parser.add_argument("--src", action="append", metavar="DIR",
                        help="source directory (repeatable, default: example)")
    parser.add_argument("--dest", default="dev-output", metavar="DIR", help="output directory")
    parser.add_argument("--template", default="template", metavar="DIR", help="template directory")
    parser.add_argument("--command", default=default_command(), metavar="CMD",
                        help="documentation generator command")
    parser.add_argument("--verbose", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument("--debug", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument("--color", dest="colorize", action=argparse.BooleanOptionalAction, default=True)
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO,
                        format="%(asctime)s %(message)s", datefmt="%H:%M:%S")

    options = BuildOptions(
        src=tuple(args.src or ["example"]),
        dest=args.dest,
        template=args.template,
        verbose=args.verbose,
        debug=args.debug,
        colorize=args.colorize,
        command=args.command,
    )
    print("🛠 Building documentation...")
    sys.exit(0 if create_doc(options) else 1)
