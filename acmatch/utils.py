from os import path

ROOT_DIR = path.dirname(path.dirname(__file__))

OUTPUT_DIR = path.join(ROOT_DIR, 'output')

# empty set
Oslash: str = 'Ø'

# alphabets up to this radix keep one full transition row per state
DENSE_RADIX_LIMIT: int = 256

DEFAULT_ALPHABET_NAME: str = 'extended-ascii'

import logging
from time import perf_counter_ns
from typing import Collection, Optional
from typing_extensions import TypeAlias

Symbol: TypeAlias = int

StateId: TypeAlias = int

PatternId: TypeAlias = int

ROOT: StateId = 0


def state_name(state: StateId) -> str:
    return f'q{state}'


class IntAllocator:

    def __init__(self, start: int = 0) -> None:
        self._id = start

    @property
    def next(self) -> int:
        _id = self._id
        self._id += 1
        return _id


class Timer:

    def __init__(self, name: str,
                 logger: Optional[logging.Logger] = None) -> None:
        self.name = name
        self.logger = logger or logging.getLogger(__name__)
        self.elapsed_ms = 0.0

    def __enter__(self) -> 'Timer':
        self.start = perf_counter_ns()
        return self

    def __exit__(self, type, value, trace):
        self.end = perf_counter_ns()
        self.elapsed_ms = (self.end - self.start) / 1e6
        self.logger.debug('[ %s ] used: %.2fms', self.name, self.elapsed_ms)


def check_type(_obj: object, _type, field_name: str):
    assert isinstance(
        _obj, _type
    ), f'Field {field_name} must be type {_type}, requested {type(_obj)}.'


def check_array_type(_list: Collection,
                     element_type,
                     list_type,
                     field_name: str,
                     allow_empty=False):
    check_type(_list, list_type, field_name)
    if not allow_empty:
        assert len(_list) != 0, f'Field {field_name} must not be empty.'
    assert all(
        isinstance(element, element_type) for element in _list
    ), f'Field {field_name} must be type List[{element_type}], requested List[{[type(element) for element in _list]}].'
