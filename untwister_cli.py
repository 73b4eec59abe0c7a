#!/usr/bin/env python3
"""
Untwister - Recover PRNG seeds from observed values
====================================================

Reads observed 32-bit outputs (one per line), then either rebuilds the
generator state directly (invertible PRNGs) or bruteforces the seed.

Examples:
    untwister -i observed.txt                       # mt19937, full seed space
    untwister -i observed.txt -r glibc-rand -u      # unix timestamps +/- 1 year
    untwister -i observed.txt -d 50 -t 8 -c 90 --lower 0 --upper 1000000
    untwister -g 12345 -r php-mt_rand               # print a test sample
    untwister -i observed.txt -g 0                  # continue from inferred state

Exit codes:
    0  completed run or help
    1  invalid configuration, unsupported PRNG, missing or empty input
"""

import argparse
import faulthandler
import logging
import signal
import sys
import threading
import time
from contextlib import contextmanager
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

import prng_registry
from progress_display import SearchProgress
from recovery.engine_config import EngineConfig
from recovery.errors import ConfigurationError, UntwisterError
from recovery.untwister import Untwister
from utils.input_reader import read_observed_outputs
from utils.results_writer import build_record, save_results

logger = logging.getLogger("untwister")

ONE_YEAR = 31536000
PREDICTION_COUNT = 10

console = Console(highlight=False, soft_wrap=True)
err_console = Console(stderr=True, highlight=False, soft_wrap=True)


def _prng_listing() -> str:
    lines = ["supported PRNG algorithms:"]
    for index, name in enumerate(prng_registry.list_available_prngs()):
        info = prng_registry.get_prng_info(name)
        default = " (default)" if index == 0 else ""
        lines.append(f"  * {name}{default} - {info.description}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="untwister",
        description="Untwister - Recover PRNG seeds from observed values.",
        epilog=_prng_listing(),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-i", "--input", metavar="FILE",
                        help="file of newline separated 32-bit integers observed from the RNG")
    parser.add_argument("-d", "--depth", type=int,
                        help="outputs to inspect per seed when brute forcing (default 1000); "
                             "higher is linearly slower")
    parser.add_argument("-r", "--prng", metavar="PRNG",
                        help="PRNG algorithm to use (see list below)")
    parser.add_argument("-u", "--unix-time", action="store_true",
                        help="only brute force unix timestamps within +/- 1 year of now")
    parser.add_argument("--lower", type=int, help="lowest seed to try (inclusive)")
    parser.add_argument("--upper", type=int, help="highest seed to try (exclusive)")
    parser.add_argument("-g", "--generate", type=int, metavar="SEED",
                        help="print a test sample from SEED, or continue from the inferred state "
                             "when --input is given")
    parser.add_argument("-c", "--confidence", type=float,
                        help="minimum confidence percentage to report")
    parser.add_argument("-t", "--threads", type=int,
                        help="worker threads (default: CPU count)")
    parser.add_argument("--config", metavar="FILE", help="JSON file of engine settings")
    parser.add_argument("-o", "--output", metavar="FILE", help="write results as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def build_config(args: argparse.Namespace) -> EngineConfig:
    """Settings file first, then command line flags on top."""
    config = EngineConfig.from_json(args.config) if args.config else EngineConfig.build()
    overrides = {
        "prng": args.prng,
        "depth": args.depth,
        "threads": args.threads,
        "min_confidence": args.confidence,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if overrides:
        config = config.replace(**overrides)
    return config


def seed_bounds(args: argparse.Namespace) -> tuple:
    lower, upper = 0, prng_registry.SEED_SPACE_END
    if args.unix_time:
        now = int(time.time())
        lower, upper = now - ONE_YEAR, now + ONE_YEAR
    if args.lower is not None:
        lower = args.lower
    if args.upper is not None:
        upper = args.upper
    return lower, upper


@contextmanager
def cancel_on_interrupt(untwister: Untwister):
    """Ctrl-C stops the workers; whatever they found so far is still reported."""
    def _handler(signum, frame):
        logger.warning("Interrupted, stopping workers ...")
        untwister.cancel()

    if threading.current_thread() is not threading.main_thread():
        yield
        return
    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def find_seed(untwister: Untwister, lower: int, upper: int):
    console.print(f"[bold blue][*][/] Looking for seed using [bold]{untwister.get_prng()}[/]")
    console.print(f"[bold blue][*][/] Spawning {untwister.get_threads()} worker thread(s) ...")

    started = time.time()
    total = max(0, min(upper, prng_registry.SEED_SPACE_END) - lower)
    with cancel_on_interrupt(untwister):
        with SearchProgress(untwister.tracker, total_work=total, title=untwister.get_prng()):
            results = untwister.search(lower, upper)
    elapsed = time.time() - started

    console.print(f"[bold blue][*][/] Completed in {int(elapsed)} second(s)")
    for result in results:
        console.print(f"[bold green][$][/] Found seed {result.seed} "
                      f"with a confidence of {result.confidence:g}%")
    if not results:
        console.print("[bold yellow][!][/] No seed reached the minimum confidence")
    return results, elapsed


def print_values(values: List[int]) -> None:
    for value in values:
        print(value)


def run(args: argparse.Namespace) -> int:
    untwister = Untwister(build_config(args))

    if args.input:
        untwister.add_observed_outputs(read_observed_outputs(args.input))

    if args.generate is not None:
        if not untwister.get_observed_outputs():
            print_values(untwister.generate_sample_from_seed(args.generate))
            return 0
        if not untwister.infer():
            err_console.print(f"[bold red][!] ERROR:[/] Could not infer {untwister.get_prng()} state from input")
            return 1
        print_values(untwister.generate_sample_from_state())
        return 0

    if not untwister.get_observed_outputs():
        build_parser().print_usage(sys.stderr)
        err_console.print("[bold red][!] ERROR:[/] No input numbers provided. Use -i <file> to provide a file")
        return 1

    observed_count = len(untwister.get_observed_outputs())
    if prng_registry.supports_inversion(untwister.get_prng()):
        started = time.time()
        if untwister.infer():
            predicted = untwister.generate_sample_from_state(PREDICTION_COUNT)
            console.print(f"[bold green][$][/] Recovered {untwister.get_prng()} internal state "
                          f"from {observed_count} output(s)")
            console.print(f"[bold blue][*][/] Next {len(predicted)} predicted output(s):")
            print_values(predicted)
            if args.output:
                save_results(args.output, build_record(
                    'inference', untwister.config, observed_count,
                    predicted_outputs=predicted, execution_time=time.time() - started))
            return 0
        console.print("[bold yellow][!][/] State inference not possible, falling back to bruteforce")

    lower, upper = seed_bounds(args)
    results, elapsed = find_seed(untwister, lower, upper)
    if args.output:
        save_results(args.output, build_record(
            'bruteforce', untwister.config, observed_count, results=results,
            search_range={'lower': lower, 'upper': min(upper, prng_registry.SEED_SPACE_END)},
            execution_time=elapsed))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    if not faulthandler.is_enabled():
        faulthandler.enable()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )

    try:
        return run(args)
    except ConfigurationError as e:
        err_console.print(f"[bold red][!] ERROR:[/] {escape(str(e))}, see -h")
        return 1
    except FileNotFoundError as e:
        err_console.print(f"[bold red][!] ERROR:[/] File \"{escape(str(e.filename))}\" not found")
        return 1
    except UntwisterError as e:
        err_console.print(f"[bold red][!] ERROR:[/] {escape(str(e))}")
        return 1
    except Exception:
        logger.exception("Unexpected failure")
        return 1


if __name__ == '__main__':
    sys.exit(main())
