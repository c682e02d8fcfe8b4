import argparse
import logging
import sys
from contextlib import nullcontext
from typing import List, Optional

from dotenv import load_dotenv
from tqdm.contrib.logging import logging_redirect_tqdm

from vncbrute.core.exceptions import ConfigurationError
from vncbrute.services.auth_probe import VncAuthProbe
from vncbrute.services.credential_source import CredentialSource
from vncbrute.services.progress import ProgressTracker, ProgressMonitor
from vncbrute.attack.brute_forcer import BruteForcer, AttackConfig
from vncbrute.utils.config import load_config
from vncbrute.utils.logger import Logger


FOUND_MESSAGE = "[+] Password found: {}"
NOT_FOUND_MESSAGE = "[-] No valid password found."


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return number


def _port(value: str) -> int:
    number = int(value)
    if not 0 < number < 65536:
        raise argparse.ArgumentTypeError(f"invalid port: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vncbrute",
        description="Find a VNC password by trying a wordlist concurrently."
    )
    parser.add_argument("-c", "--concurrency", type=_positive_int, default=None,
                        help="number of concurrent attempts (default: 100)")
    parser.add_argument("-t", "--timeout", type=_positive_float, default=None,
                        help="connection timeout in seconds (default: 3)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log every failed candidate")
    parser.add_argument("--config", default=None,
                        help="YAML config file (default: config/config.yaml if present)")
    parser.add_argument("--no-progress", action="store_true",
                        help="do not draw the progress line")
    parser.add_argument("host", help="VNC server address")
    parser.add_argument("port", type=_port, help="VNC server port")
    parser.add_argument("password_file", help="newline separated password list")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)

        concurrency = args.concurrency or config['attack']['concurrency']
        timeout = args.timeout or config['attack']['timeout']

        level = config['logging']['level']
        if args.verbose and logging.getLevelName(level) > logging.INFO:
            level = "INFO"

        logger = Logger(
            name="VncBrute",
            level=level,
            log_file=config['logging'].get('file'),
            console=config['logging']['console']
        )

        source = CredentialSource(args.password_file)
        source.validate()

        probe = VncAuthProbe(args.host, args.port, timeout=timeout, logger=logger)
        progress = ProgressTracker()
        attacker = BruteForcer(
            probe=probe,
            source=source,
            config=AttackConfig(concurrency=concurrency, timeout=timeout, verbose=args.verbose),
            logger=logger,
            progress=progress
        )

        monitor = None
        redirect = nullcontext()
        if config['progress']['enabled'] and not args.no_progress:
            monitor = ProgressMonitor(progress, interval=config['progress']['interval'])
            # console log lines go through tqdm.write while the bar is drawn
            redirect = logging_redirect_tqdm(loggers=[logger.logger])

        with redirect:
            if monitor is not None:
                monitor.start()
            try:
                result = attacker.run()
            finally:
                if monitor is not None:
                    monitor.stop()

    except ConfigurationError as e:
        print(f"Configuration error: {str(e)}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted.\n", file=sys.stderr)
        return 130

    if result.found:
        print(FOUND_MESSAGE.format(result.password))
    else:
        print(NOT_FOUND_MESSAGE)
    return 0


if __name__ == "__main__":
    sys.exit(main())
