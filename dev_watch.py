"""Development watch mode: rebuild the documentation whenever sources or templates change."""

import argparse
import logging
import os
import signal
import sys
import threading

from build_docs import BuildOptions, create_doc, default_command
from doc_change_handler import watch_and_rebuild
from rebuild_scheduler import DEFAULT_DEBOUNCE_INTERVAL, RebuildScheduler

logger = logging.getLogger("dev_watch")

_COLORS = {
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[1;31m",
}
_RESET = "\033[0m"


class _ColorFormatter(logging.Formatter):
    """Colours warnings and errors."""

    def format(self, record):
        message = super().format(record)
        color = _COLORS.get(record.levelno)
        return f"{color}{message}{_RESET}" if color else message


def setup_logging(debug=False, colorize=True):
    fmt = "%(asctime)s [watch] %(message)s"
    formatter = _ColorFormatter(fmt, datefmt="%H:%M:%S") if colorize else logging.Formatter(fmt, datefmt="%H:%M:%S")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    # watchdog is chatty at DEBUG
    logging.getLogger("watchdog").setLevel(logging.INFO)


def _debounce_seconds(value):
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if seconds < 0:
        raise argparse.ArgumentTypeError("debounce must be >= 0")
    return seconds


def parse_args(argv=None):
    env = os.environ
    parser = argparse.ArgumentParser(
        prog="docs-dev-watch",
        description="Watch source and template directories and rebuild the documentation on change.",
    )
    parser.add_argument("--src", action="append", metavar="DIR",
                        help="source directory to watch (repeatable, default: example)")
    parser.add_argument("--template", default=env.get("DOCS_WATCH_TEMPLATE", "template"), metavar="DIR",
                        help="template directory to watch")
    parser.add_argument("--dest", default=env.get("DOCS_WATCH_DEST", "dev-output"), metavar="DIR",
                        help="output directory")
    parser.add_argument("--debounce", type=_debounce_seconds,
                        default=env.get("DOCS_WATCH_DEBOUNCE", str(DEFAULT_DEBOUNCE_INTERVAL)),
                        metavar="SECONDS", help="quiet period before rebuilding")
    parser.add_argument("--command", default=default_command(), metavar="CMD",
                        help="documentation generator command")
    parser.add_argument("--verbose", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument("--debug", action=argparse.BooleanOptionalAction, default=True)
    parser.add_argument("--color", dest="colorize", action=argparse.BooleanOptionalAction, default=True)
    args = parser.parse_args(argv)

    if not args.src:
        env_src = env.get("DOCS_WATCH_SRC")
        args.src = [s for s in env_src.split(os.pathsep) if s] if env_src else ["example"]
    return args


def options_from_args(args):
    return BuildOptions(
        src=tuple(args.src),
        dest=args.dest,
        template=args.template,
        verbose=args.verbose,
        debug=args.debug,
        colorize=args.colorize,
        command=args.command,
    )


def install_signal_handlers(stop_event):
    def _stop(signum, frame):
        stop_event.set()

    for signum in (signal.SIGINT, signal.SIGTERM):
        signal.signal(signum, _stop)


def run(options, debounce_interval=DEFAULT_DEBOUNCE_INTERVAL, stop_event=None, rebuild=create_doc):
    """
    Initial build, then watch until stop_event is set.

    Returns the process exit status.
    """
    stop_event = stop_event or threading.Event()

    logger.info("Starting development watch mode...")
    for src in options.src:
        logger.info("Watching source files: %s", src)
    logger.info("Watching template files: %s", options.template)
    logger.info("Output directory: %s", options.dest)

    watch_dirs = [("Source", src) for src in options.src] + [("Template", options.template)]
    missing = [d for _, d in watch_dirs if not os.path.isdir(d)]
    if missing:
        for d in missing:
            logger.error("❌ Watched directory does not exist: %s", d)
        return 1

    scheduler = RebuildScheduler(rebuild, options=options, debounce_interval=debounce_interval)
    observer = None
    try:
        scheduler.run_initial_build()
        observer = watch_and_rebuild(watch_dirs, scheduler)
        logger.info("👀 Watch mode active. Press Ctrl+C to stop.")
        while not stop_event.wait(1.0):
            pass
    finally:
        logger.info("Stopping watch mode...")
        scheduler.shutdown()
        scheduler.wait_idle()
        if observer is not None:
            observer.stop()
            observer.join()
    return 0


def main(argv=None):
    args = parse_args(argv)
    setup_logging(debug=args.debug, colorize=args.colorize)

    stop_event = threading.Event()
    install_signal_handlers(stop_event)
    return run(options_from_args(args), debounce_interval=args.debounce, stop_event=stop_event)


if __name__ == "__main__":
    sys.exit(main())
