#!/usr/bin/env python3
"""
Search texts for a set of patterns with one Aho-Corasick automaton.

Usage: acmatch patterns.json5 book.txt --text "ushers" --table -v
"""
import argparse
import json
import logging
import os
import sys
from typing import List, Optional, Tuple
import json5

if __name__ == '__main__':
    SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
    sys.path.append(os.path.dirname(SCRIPT_DIR))

from acmatch.utils import DEFAULT_ALPHABET_NAME, OUTPUT_DIR
from acmatch.alphabet import Text, alphabet_names, get_alphabet
from acmatch.automaton import Automaton, build
from acmatch.errors import AutomatonError
from acmatch.matcher import format_result, search

logger = logging.getLogger('acmatch')


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        prog='acmatch',
        description='Find every occurrence of a set of patterns in texts.')
    ap.add_argument('patterns',
                    help='JSON5 file: a list of patterns or a dumped automaton')
    ap.add_argument('texts', nargs='*', help='Text files to scan')
    ap.add_argument('--text', action='append', default=[],
                    help='Literal text to scan (repeatable)')
    ap.add_argument('--alphabet', choices=alphabet_names(), default=None,
                    help=f'Symbol alphabet (default: the dumped one, else {DEFAULT_ALPHABET_NAME})')
    ap.add_argument('--table', action='store_true',
                    help='Print the automaton state table')
    ap.add_argument('--render', metavar='DIR', nargs='?', const=OUTPUT_DIR,
                    default=None, help='Render the automaton as SVG into DIR')
    ap.add_argument('--dump', metavar='FILE', default=None,
                    help='Write the pattern set as JSON to FILE')
    ap.add_argument('--verbose', '-v', action='store_true',
                    help='Verbose logging')
    return ap.parse_args(argv)


def load_automaton(filename: str, alphabet_name: Optional[str]) -> Automaton:
    with open(filename, 'r', encoding='utf-8') as f:
        data = json5.load(f)
    if isinstance(data, dict):
        if alphabet_name is not None:
            data = dict(data, alphabet=alphabet_name)
        return Automaton.from_dict(data)
    if not isinstance(data, list):
        raise ValueError(
            f'{filename} must hold a list of patterns or an automaton object')
    return build(data, get_alphabet(alphabet_name or DEFAULT_ALPHABET_NAME))


def load_texts(args: argparse.Namespace,
               automaton: Automaton) -> List[Tuple[str, Text]]:
    texts: List[Tuple[str, Text]] = []
    binary = automaton.alphabet.is_dense
    for filename in args.texts:
        logger.debug('reading %s (%s)', filename, 'bytes' if binary else 'text')
        if binary:
            with open(filename, 'rb') as f:
                texts.append((filename, f.read()))
        else:
            with open(filename, 'r', encoding='utf-8') as f:
                texts.append((filename, f.read()))
    for i, text in enumerate(args.text):
        texts.append((f'--text[{i}]', text))
    return texts


def run(args: argparse.Namespace) -> None:
    automaton = load_automaton(args.patterns, args.alphabet)
    logger.info('%d patterns, %d states, alphabet %s', len(automaton.patterns),
                len(automaton), automaton.alphabet.name)

    if args.table:
        print(automaton)

    if args.render is not None:
        os.makedirs(args.render, exist_ok=True)
        graph = automaton.visualize()
        graph.format = 'svg'
        filename = os.path.join(args.render, 'automaton')
        graph.render(cleanup=True, filename=filename)
        logger.info('svg file saved to %s.svg', filename)

    if args.dump is not None:
        with open(args.dump, 'w', encoding='utf-8') as f:
            json.dump(automaton.to_dict(), f, ensure_ascii=False, indent=2)
        logger.info('automaton written to %s', args.dump)

    for name, text in load_texts(args, automaton):
        print(f'Text: {name}')
        print(format_result(search(automaton, text)))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    # logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=level, format='%(asctime)s %(levelname)s %(message)s')

    try:
        run(args)
    except (AutomatonError, OSError, ValueError) as e:
        logger.error('%s', e)
        return 2
    return 0


if __name__ == '__main__':
    sys.exit(main())
