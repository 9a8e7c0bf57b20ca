"""
CLI entry point. Run as: python -m alchemist <base> <target> [<target> ...]
"""

import argparse
import sys

from .core.engine import DEFAULT_MAX_DEPTH, ExpressionDictionary
from .core.errors import AlchemistError
from .core.proof import print_proof
from .visualization import print_dictionary, print_history, export_dot


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Write numbers using only the digits of a base string")
    parser.add_argument("base", nargs="?", default=None,
                        help="Base digit string (omit with --load)")
    parser.add_argument("targets", nargs="*", help="Values to prove, e.g. 42 -7 3/4")
    parser.add_argument("--depth",  type=float, default=DEFAULT_MAX_DEPTH,
                        help="Max search depth (default: unlimited)")
    parser.add_argument("--seed",   type=int, default=None, help="Random seed")
    parser.add_argument("--quiet",  action="store_true",    help="Less output")
    parser.add_argument("--trace",  action="store_true",    help="Print evaluation trace")
    parser.add_argument("--steps",  action="store_true",    help="Print proof steps")
    parser.add_argument("--save",   type=str, default=None, help="Save dictionary to file")
    parser.add_argument("--load",   type=str, default=None, help="Load dictionary from file")
    parser.add_argument("--dot",    type=str, default=None,
                        help="Export the last proof's DAG to file")
    parser.add_argument("--accumulate-splits", action="store_true",
                        help="Union every digit split while generating")
    parser.add_argument("--verify", action="store_true",
                        help="Re-evaluate each proof's text and fail on mismatch")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    verbose = not args.quiet

    # --- Load or build the dictionary ---
    try:
        if args.load:
            book = ExpressionDictionary.load(
                args.load, verbose=verbose, seed=args.seed,
                accumulate_splits=args.accumulate_splits)
            if args.base is not None:
                args.targets.insert(0, args.base)
            print(f"Loaded {book!r} from {args.load}")
        elif args.base is None:
            parser.error("a base digit string is required unless --load is given")
        else:
            book = ExpressionDictionary(
                args.base, verbose=verbose, seed=args.seed,
                accumulate_splits=args.accumulate_splits)
            print(f"Built {book!r}")
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    # --- Prove every target against the one dictionary ---
    status = 0
    last = None
    for target in args.targets:
        try:
            node = book.prove_ast(target, args.depth)
            if args.verify:
                book.verify(target, args.depth)
        except KeyboardInterrupt:
            print("\nInterrupted.")
            break
        except (AlchemistError, ValueError) as e:
            print(f"{target}: {e}", file=sys.stderr)
            status = 1
            continue

        last = node
        print(f"{target} = {node.render()}")
        if args.steps:
            print_proof(node, target)
        if args.trace:
            print(book.calculation_steps(node))

    # --- Post-processing ---
    if verbose:
        print_dictionary(book)
        print_history(book)

    if args.dot and last is not None:
        export_dot(last, args.dot)

    if args.save:
        book.save(args.save)
        print(f"Dictionary saved to {args.save}")

    return status


if __name__ == "__main__":
    sys.exit(main())
