#!/usr/bin/env python3
"""
Markov Dictionary Command Line Interface

Trains persistent Markov dictionaries from text files and generates text from
them.

Examples:
    markov-dictionary train data/books books/*.txt --depth 3
    markov-dictionary words data/books 40 --random-seed 7
    markov-dictionary sentences data/books 3
    markov-dictionary delete data/books
"""
import sys
import argparse

from markov_dictionary.exceptions import MarkovError
from markov_dictionary.markov import MarkovModel, delete_dictionary
from markov_dictionary.utils.config import load_config
from markov_dictionary.utils.loggers.json_logger import get_logger


def build_parser():
    parser = argparse.ArgumentParser(
        prog="markov-dictionary",
        description="Build Markov dictionaries and generate text from them")
    parser.add_argument("--env", choices=["development", "test", "production"],
                        default="development", help="Environment (default: development)")
    parser.add_argument("--config-dir", help="Directory holding markov*.yaml config files")
    parser.add_argument("--log-file", help="Also write JSON logs to this file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    train = subparsers.add_parser("train", help="Add text files to a dictionary")
    train.add_argument("dictionary", help="Dictionary path (.mmd is appended)")
    train.add_argument("files", nargs="+", help="Text files to parse")
    train.add_argument("--depth", type=int,
                       help="Context size, 1 to 9 (default: from config)")

    for name, unit in (("words", "words"), ("sentences", "sentences")):
        generate = subparsers.add_parser(name, help=f"Generate {unit}")
        generate.add_argument("dictionary", help="Dictionary path (.mmd is appended)")
        generate.add_argument("count", type=int, help=f"Number of {unit}")
        generate.add_argument("--depth", type=int,
                              help="Context size of the dictionary (default: from config)")
        generate.add_argument("--seed", help="Context to start generating from")
        generate.add_argument("--random-seed", type=int,
                              help="Seed for reproducible output")

    delete = subparsers.add_parser("delete", help="Delete a dictionary file")
    delete.add_argument("dictionary", help="Dictionary path (.mmd is appended)")

    return parser


def run(args, config, logger):
    if args.command == "delete":
        delete_dictionary(args.dictionary, logger=logger)
        print(f"Deleted {args.dictionary}")
        return

    kwargs = {"depth": args.depth, "config": config, "logger": logger}
    if args.command in ("words", "sentences"):
        kwargs["random_seed"] = args.random_seed
    model = MarkovModel.persistent(args.dictionary, **kwargs)

    if args.command == "train":
        for path in args.files:
            model.parse_file(path)
        model.save()
        print(f"Saved {len(model.dictionary)} contexts to {model.location}")
    elif args.command == "words":
        print(model.generate_words(args.count, seed=args.seed))
    else:
        print(model.generate_sentences(args.count, seed=args.seed))


def main(argv=None):
    """
    Parse arguments and run a command.

    Returns:
        int: Exit status, 1 when a Markov dictionary error occurred
    """
    args = build_parser().parse_args(argv)
    config = load_config(environment=args.env, config_dir=args.config_dir)
    logger = get_logger(
        f"markov_dictionary_{args.env}",
        log_file=args.log_file or config["log_file"],
        console_json=config["console_json"],
    )

    try:
        run(args, config, logger)
    except (MarkovError, ValueError) as e:
        logger.error(f"Command failed: {e}", extra={
            "metrics": {"command": args.command, "error_type": type(e).__name__}
        })
        print(f"error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
