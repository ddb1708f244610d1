"""
smartcsv: CSV parsing with encoding/delimiter sniffing + schema validation (stdlib-only).

Contract (v0):
- Read-only. Rows are plain dicts of column name -> raw string value.
- Encoding (files only): byte-order mark first, then strict UTF-8 over the
  first 1024 bytes, else the fallback encoding (latin-1 by default).
- Delimiter: sniffed from up to 5 non-empty lines among , ; TAB | :
  A candidate must appear the same number of times (>= 1) on every sampled
  line. Highest count wins, ties go to the earlier candidate, default ",".
- Quoting: quote char toggles quoted state, doubled quote inside quotes is a
  literal quote. Fields are trimmed after quote resolution.
- Lines: fully-empty lines are dropped, whitespace-only lines are skipped
  when skip_empty_lines is set. Short rows are padded with "", extra fields
  are dropped.
- Schema (optional):
    headers: every schema column must appear (case-insensitive) or
             TemplateError lists all missing names.
    rows:    type conversion always runs (blank -> zero value), then the rule
             checks required -> min_length -> max_length -> pattern -> predicate.
             Length/pattern/predicate skip empty values.
- Errors: fail fast with ValidationError (row/column/value context), or
  collect everything into ValidationErrors with ValidationMode.ACCUMULATE.
- Row index in errors: 1-based physical line number (header is line 1).

API:
- parse_text(text, schema=None) -> list of dict rows
- parse_file(path, schema=None, encoding=None) -> list of dict rows
- parse_stream(source, schema=None, encoding="utf-8") -> iterator of dict rows
- CSVParser(options) -> same operations bound to one ParsingOptions, plus
  async variants
- Schema().add_column(...) / add_int_column(...) / ... -> chainable builder
- detect_encoding, detect_file_encoding, detect_delimiter, tokenize

Python: 3.10+
"""

from __future__ import annotations

import asyncio
import codecs
import dataclasses
import itertools
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import (
    Any,
    AsyncIterator,
    Callable,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

logger = logging.getLogger(__name__)

__version__ = "0.1.0"

Row = Dict[str, str]


# ----------------------------
# Exceptions
# ----------------------------

class CSVError(Exception):
    """Base class for every error raised by smartcsv."""


class NotFoundError(CSVError, FileNotFoundError):
    """Raised when an input path does not exist."""

    def __init__(self, path: Union[str, Path]) -> None:
        super().__init__(f"File not found: {path}")
        self.path = str(path)


class ParseError(CSVError):
    """Raised when reading or decoding fails; the original error is chained."""


class TemplateError(CSVError):
    """Raised when the header row lacks one or more schema columns."""

    def __init__(self, missing: Sequence[str]) -> None:
        super().__init__(f"Missing required columns: {', '.join(missing)}")
        self.missing = list(missing)


class ValidationError(CSVError, ValueError):
    """Raised when a single value fails type conversion or a rule check."""

    def __init__(
        self,
        *,
        row: int,
        column: str,
        value: Optional[str],
        reason: str,
        message: Optional[str] = None,
    ) -> None:
        msg = message or (
            f"ValidationError(row={row}, column={column!r}, value={value!r}): {reason}"
        )
        super().__init__(msg)
        self.row = row          # 1-based physical line number (header is 1)
        self.column = column
        self.value = value      # raw cell text, None when the column is absent
        self.reason = reason


class ValidationErrors(ValidationError):
    """All violations collected by a parse running in accumulate mode."""

    def __init__(self, errors: Sequence[ValidationError]) -> None:
        self.errors = list(errors)
        first = self.errors[0]
        CSVError.__init__(
            self,
            f"{len(self.errors)} validation error(s); first: {first}",
        )
        self.row = first.row
        self.column = first.column
        self.value = first.value
        self.reason = first.reason


class ArgumentError(CSVError, ValueError):
    """Raised on invalid schema or options input."""


# ----------------------------
# Type dialect
# ----------------------------

@dataclass(frozen=True)
class TypeDialect:
    # bool parsing (case-insensitive)
    bool_true: Tuple[str, ...] = ("true", "t", "yes", "y", "1")
    bool_false: Tuple[str, ...] = ("false", "f", "no", "n", "0")
    datetime_parser: Callable[[str], datetime] = staticmethod(datetime.fromisoformat)


DEFAULT_TYPE_DIALECT = TypeDialect()


class ColumnType(str, Enum):
    STRING = "string"
    INT = "int"
    DECIMAL = "decimal"
    DATETIME = "datetime"
    BOOLEAN = "boolean"


_PY_TYPES: Dict[type, ColumnType] = {
    str: ColumnType.STRING,
    int: ColumnType.INT,
    Decimal: ColumnType.DECIMAL,
    float: ColumnType.DECIMAL,
    datetime: ColumnType.DATETIME,
    bool: ColumnType.BOOLEAN,
}

_ZERO_VALUES: Dict[ColumnType, Any] = {
    ColumnType.STRING: "",
    ColumnType.INT: 0,
    ColumnType.DECIMAL: Decimal(0),
    ColumnType.DATETIME: datetime.min,
    ColumnType.BOOLEAN: False,
}


def _coerce_column_type(column_type: Union[ColumnType, str, type]) -> ColumnType:
    if isinstance(column_type, ColumnType):
        return column_type
    if isinstance(column_type, type):
        if column_type in _PY_TYPES:
            return _PY_TYPES[column_type]
        raise ArgumentError(f"Unsupported column type: {column_type.__name__}")
    try:
        return ColumnType(str(column_type).strip().lower())
    except ValueError:
        raise ArgumentError(f"Unknown column type: {column_type!r}") from None


# ----------------------------
# Type converters
# ----------------------------

def _parse_bool(raw: str, td: TypeDialect) -> bool:
    s = raw.strip().lower()
    if s in td.bool_true:
        return True
    if s in td.bool_false:
        return False
    raise ValueError(f"Invalid bool literal: {raw!r}")


def _parse_decimal(raw: str) -> Decimal:
    try:
        value = Decimal(raw.strip())
    except InvalidOperation:
        raise ValueError(f"Invalid decimal literal: {raw!r}") from None
    if not value.is_finite():
        raise ValueError(f"Invalid decimal literal: {raw!r}")
    return value


def _get_converter(column_type: ColumnType, td: TypeDialect) -> Callable[[str], Any]:
    if column_type is ColumnType.STRING:
        return lambda s: s
    if column_type is ColumnType.INT:
        return lambda s: int(s.strip())
    if column_type is ColumnType.DECIMAL:
        return _parse_decimal
    if column_type is ColumnType.DATETIME:
        return lambda s: td.datetime_parser(s.strip())
    if column_type is ColumnType.BOOLEAN:
        return lambda s: _parse_bool(s, td)
    raise AssertionError(f"Unsupported type: {column_type!r}")


def convert_value(
    raw: str,
    column_type: Union[ColumnType, str, type],
    td: TypeDialect = DEFAULT_TYPE_DIALECT,
) -> Any:
    """
    Convert one raw cell to the Python value of `column_type`.
    Blank or whitespace-only input yields the type's zero value.
    Raises ValueError when the text is not a valid literal.
    """
    ct = _coerce_column_type(column_type)
    if not raw or raw.isspace():
        return _ZERO_VALUES[ct]
    return _get_converter(ct, td)(raw)


# ----------------------------
# Schema / column spec
# ----------------------------

@dataclass(frozen=True)
class ValidationRule:
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    predicate: Optional[Callable[[str], bool]] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class ColumnSchema:
    name: str
    type: ColumnType = ColumnType.STRING
    rule: Optional[ValidationRule] = None

    def check(self, value: str, *, row: int, td: TypeDialect = DEFAULT_TYPE_DIALECT) -> None:
        """Run type conversion then the rule chain; raise on the first failure."""
        try:
            convert_value(value, self.type, td)
        except (ValueError, OverflowError) as e:
            raise ValidationError(
                row=row, column=self.name, value=value,
                reason=f"Invalid data type, expected {self.type.name.title()}: {e}",
            ) from e

        if self.rule is not None:
            _check_rule(self.name, value, self.rule, row=row)


def _check_rule(column: str, value: str, rule: ValidationRule, *, row: int) -> None:
    def fail(reason: str) -> ValidationError:
        return ValidationError(
            row=row, column=column, value=value, reason=reason, message=rule.error_message,
        )

    if rule.required and (not value or value.isspace()):
        raise fail(f"Column {column!r} is required")

    if not value:
        return

    if rule.min_length is not None and len(value) < rule.min_length:
        raise fail(f"len {len(value)} < min_length {rule.min_length}")
    if rule.max_length is not None and len(value) > rule.max_length:
        raise fail(f"len {len(value)} > max_length {rule.max_length}")
    if rule.pattern and re.search(rule.pattern, value) is None:
        raise fail(f"value does not match /{rule.pattern}/")
    if rule.predicate is not None:
        try:
            ok = rule.predicate(value)
        except Exception as e:
            raise fail(f"Custom validation raised {type(e).__name__}: {e}") from e
        if not ok:
            raise fail("Custom validation failed")


class Schema:
    """
    Ordered set of column declarations.

    Column names are stored case-sensitively; header matching ignores case.
    Adding an existing name replaces that column in place.
    """

    def __init__(self, *, type_dialect: TypeDialect = DEFAULT_TYPE_DIALECT) -> None:
        self._columns: Dict[str, ColumnSchema] = {}
        self._td = type_dialect

    def add_column(
        self,
        name: str,
        column_type: Union[ColumnType, str, type] = ColumnType.STRING,
        rule: Optional[ValidationRule] = None,
    ) -> "Schema":
        if name is None or not str(name).strip():
            raise ArgumentError("Column name cannot be null or empty.")
        self._columns[name] = ColumnSchema(
            name=name, type=_coerce_column_type(column_type), rule=rule,
        )
        return self

    def add_string_column(self, name: str, rule: Optional[ValidationRule] = None) -> "Schema":
        return self.add_column(name, ColumnType.STRING, rule)

    def add_int_column(self, name: str, rule: Optional[ValidationRule] = None) -> "Schema":
        return self.add_column(name, ColumnType.INT, rule)

    def add_decimal_column(self, name: str, rule: Optional[ValidationRule] = None) -> "Schema":
        return self.add_column(name, ColumnType.DECIMAL, rule)

    def add_datetime_column(self, name: str, rule: Optional[ValidationRule] = None) -> "Schema":
        return self.add_column(name, ColumnType.DATETIME, rule)

    def add_boolean_column(self, name: str, rule: Optional[ValidationRule] = None) -> "Schema":
        return self.add_column(name, ColumnType.BOOLEAN, rule)

    @property
    def columns(self) -> List[ColumnSchema]:
        return list(self._columns.values())

    def column_names(self) -> List[str]:
        return list(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def validate_headers(self, headers: Iterable[str]) -> None:
        present = {h.casefold() for h in headers}
        missing = [name for name in self._columns if name.casefold() not in present]
        if missing:
            raise TemplateError(missing)

    def validate_row(self, row: Mapping[str, str], row_index: int) -> None:
        for spec in self._columns.values():
            self._validate_column(spec, row, row_index)

    def row_errors(self, row: Mapping[str, str], row_index: int) -> List[ValidationError]:
        """Like validate_row, but return one error per failing column instead of raising."""
        errors: List[ValidationError] = []
        for spec in self._columns.values():
            try:
                self._validate_column(spec, row, row_index)
            except ValidationError as e:
                errors.append(e)
        return errors

    def _validate_column(self, spec: ColumnSchema, row: Mapping[str, str], row_index: int) -> None:
        if spec.name not in row:
            if spec.rule is not None and spec.rule.required:
                raise ValidationError(
                    row=row_index, column=spec.name, value=None,
                    reason=f"Required column {spec.name!r} is missing",
                )
            return
        spec.check(row[spec.name], row=row_index, td=self._td)


# ----------------------------
# Options
# ----------------------------

DEFAULT_FALLBACK_ENCODING = "latin-1"


class ValidationMode(str, Enum):
    FAIL_FAST = "fail_fast"
    ACCUMULATE = "accumulate"


_ENV_CHAR_ALIASES = {"\\t": "\t", "tab": "\t"}


@dataclass(frozen=True)
class ParsingOptions:
    delimiter: Optional[str] = None          # None -> sniff
    has_headers: bool = True
    quote_char: str = '"'
    trim_whitespace: bool = True
    skip_empty_lines: bool = True
    buffer_size: int = 4096                  # streaming read chunk size
    sample_lines: int = 5                    # lines sampled by detect_delimiter
    validation_mode: ValidationMode = ValidationMode.FAIL_FAST
    fallback_encoding: str = DEFAULT_FALLBACK_ENCODING

    def __post_init__(self) -> None:
        if self.delimiter is not None and len(self.delimiter) != 1:
            raise ArgumentError(f"delimiter must be a single character, got {self.delimiter!r}")
        if len(self.quote_char) != 1:
            raise ArgumentError(f"quote_char must be a single character, got {self.quote_char!r}")
        if self.delimiter == self.quote_char:
            raise ArgumentError("delimiter and quote_char must differ")
        if self.buffer_size <= 0:
            raise ArgumentError(f"buffer_size must be positive, got {self.buffer_size!r}")
        if self.sample_lines <= 0:
            raise ArgumentError(f"sample_lines must be positive, got {self.sample_lines!r}")
        try:
            mode = ValidationMode(self.validation_mode)
        except ValueError:
            raise ArgumentError(f"Unknown validation mode: {self.validation_mode!r}") from None
        object.__setattr__(self, "validation_mode", mode)

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        prefix: str = "SMARTCSV_",
    ) -> "ParsingOptions":
        """Build options from environment variables, defaults for anything unset."""
        env = os.environ if environ is None else environ
        kwargs: Dict[str, Any] = {}

        delimiter = env.get(prefix + "DELIMITER")
        if delimiter:
            kwargs["delimiter"] = _ENV_CHAR_ALIASES.get(delimiter.lower(), delimiter)
        quote_char = env.get(prefix + "QUOTE_CHAR")
        if quote_char:
            kwargs["quote_char"] = quote_char

        for name in ("has_headers", "trim_whitespace", "skip_empty_lines"):
            raw = env.get(prefix + name.upper())
            if raw is None:
                continue
            try:
                kwargs[name] = _parse_bool(raw, DEFAULT_TYPE_DIALECT)
            except ValueError as e:
                raise ArgumentError(f"{prefix}{name.upper()}: {e}") from None

        for name in ("buffer_size", "sample_lines"):
            raw = env.get(prefix + name.upper())
            if raw is None:
                continue
            try:
                kwargs[name] = int(raw)
            except ValueError:
                raise ArgumentError(f"{prefix}{name.upper()}: not an integer: {raw!r}") from None

        mode = env.get(prefix + "VALIDATION_MODE")
        if mode:
            kwargs["validation_mode"] = mode.strip().lower()
        fallback = env.get(prefix + "FALLBACK_ENCODING")
        if fallback:
            kwargs["fallback_encoding"] = fallback.strip()

        return cls(**kwargs)


DEFAULT_OPTIONS = ParsingOptions()


# ----------------------------
# Encoding sniffing
# ----------------------------

_UTF8_SAMPLE_SIZE = 1024


def detect_encoding(data: bytes, default: str = DEFAULT_FALLBACK_ENCODING) -> str:
    """
    Guess the codec name for a byte prefix.

    Byte-order marks win (utf-8-sig, utf-32-le, utf-16-le, utf-16-be, utf-32-be).
    Without one, the first 1024 bytes must decode as strict UTF-8 to get
    "utf-8"; anything else returns `default`.
    """
    if data.startswith(codecs.BOM_UTF8):
        return "utf-8-sig"
    if data.startswith(codecs.BOM_UTF16_LE):
        if data[2:4] == b"\x00\x00":
            return "utf-32-le"
        return "utf-16-le"
    if data.startswith(codecs.BOM_UTF16_BE):
        return "utf-16-be"
    if data.startswith(codecs.BOM_UTF32_BE):
        return "utf-32-be"

    decoder = codecs.getincrementaldecoder("utf-8")("strict")
    try:
        # a sequence cut at the sample boundary is only an error for short input
        decoder.decode(bytes(data[:_UTF8_SAMPLE_SIZE]), final=len(data) <= _UTF8_SAMPLE_SIZE)
    except UnicodeDecodeError:
        return default
    return "utf-8"


def detect_file_encoding(path: Union[str, Path], default: str = DEFAULT_FALLBACK_ENCODING) -> str:
    # one extra byte tells a truncated sample from a short file
    with open(path, "rb") as fh:
        head = fh.read(_UTF8_SAMPLE_SIZE + 1)
    return detect_encoding(head, default)


# ----------------------------
# Delimiter sniffing
# ----------------------------

CANDIDATE_DELIMITERS: Tuple[str, ...] = (",", ";", "\t", "|", ":")

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _count_unquoted(line: str, delimiter: str, quote_char: str) -> int:
    count = 0
    in_quotes = False
    for ch in line:
        if ch == quote_char:
            in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            count += 1
    return count


def detect_delimiter(text: Optional[str], sample_lines: int = 5, *, quote_char: str = '"') -> str:
    """
    Pick the field separator among CANDIDATE_DELIMITERS.

    A candidate qualifies when it occurs the same number of times (at least
    once) on every sampled non-empty line. The highest count wins; ties go to
    the candidate listed first. Falls back to ",".
    """
    lines = [ln for ln in _LINE_BREAK.split(text or "") if ln][:sample_lines]
    if not lines:
        return ","

    scores: Dict[str, int] = {}
    for d in CANDIDATE_DELIMITERS:
        counts = [_count_unquoted(ln, d, quote_char) for ln in lines]
        if counts[0] > 0 and all(c == counts[0] for c in counts):
            scores[d] = counts[0]

    if not scores:
        return ","
    return max(scores, key=scores.__getitem__)


# ----------------------------
# Tokenizer
# ----------------------------

def tokenize(line: str, delimiter: str = ",", quote_char: str = '"', *, trim: bool = True) -> List[str]:
    """Split one line into fields. Always returns at least one field."""
    fields: List[str] = []
    buf: List[str] = []
    in_quotes = False
    i, n = 0, len(line)

    def close_field() -> None:
        value = "".join(buf)
        fields.append(value.strip() if trim else value)
        buf.clear()

    while i < n:
        ch = line[i]
        if ch == quote_char:
            if in_quotes and i + 1 < n and line[i + 1] == quote_char:
                buf.append(quote_char)
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == delimiter and not in_quotes:
            close_field()
        else:
            buf.append(ch)
        i += 1

    close_field()
    return fields


# ----------------------------
# Line sources
# ----------------------------

def _strip_bom(text: str) -> str:
    return text[1:] if text.startswith("\ufeff") else text


def _iter_source_lines(source: Any, encoding: str, buffer_size: int) -> Iterator[str]:
    """Yield lines without terminators from a file-like object or an iterable of lines."""
    read = getattr(source, "read", None)
    if read is None:
        for item in source:
            line = item.decode(encoding) if isinstance(item, (bytes, bytearray)) else item
            yield line.rstrip("\r\n")
        return

    decoder = codecs.getincrementaldecoder(encoding)("strict")
    pending = ""
    while True:
        chunk = read(buffer_size)
        if not chunk:
            break
        pending += decoder.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
        # hold back a trailing \r, its \n may start the next chunk
        carry = pending.endswith("\r")
        *lines, pending = _LINE_BREAK.split(pending[:-1] if carry else pending)
        if carry:
            pending += "\r"
        yield from lines

    pending = (pending + decoder.decode(b"", final=True)).rstrip("\r")
    if pending:
        yield pending


def _assemble_row(headers: Sequence[str], values: Sequence[str]) -> Row:
    return {h: values[i] if i < len(values) else "" for i, h in enumerate(headers)}


# ----------------------------
# Parser
# ----------------------------

class CSVParser:
    """Parses CSV text, files and streams with one immutable ParsingOptions."""

    def __init__(self, options: Optional[ParsingOptions] = None) -> None:
        self.options = options if options is not None else DEFAULT_OPTIONS

    def configure(self, **changes: Any) -> "CSVParser":
        """Return a new parser whose options have `changes` applied."""
        try:
            options = dataclasses.replace(self.options, **changes)
        except TypeError as e:
            raise ArgumentError(str(e)) from None
        return CSVParser(options)

    def parse_text(self, text: Optional[str], schema: Optional[Schema] = None) -> List[Row]:
        if not text:
            return []
        try:
            rows = list(self._iter_records(_LINE_BREAK.split(text), schema, sniff_text=text))
        except CSVError:
            raise
        except Exception as e:
            raise ParseError(f"Failed to parse CSV data: {e}") from e
        logger.info("Parsed %d row(s)", len(rows))
        return rows

    def parse_file(
        self,
        path: Union[str, Path],
        schema: Optional[Schema] = None,
        encoding: Optional[str] = None,
    ) -> List[Row]:
        if path is None or not str(path).strip():
            raise ArgumentError("File path cannot be null or empty.")
        p = Path(path)
        if not p.is_file():
            raise NotFoundError(p)

        try:
            if encoding is None:
                encoding = detect_file_encoding(p, self.options.fallback_encoding)
                logger.debug("Detected encoding %s for %s", encoding, p)
            with open(p, "r", encoding=encoding, newline="") as fh:
                text = fh.read()
        except Exception as e:
            raise ParseError(f"Failed to parse CSV file '{p}': {e}") from e

        return self.parse_text(_strip_bom(text), schema)

    def parse_stream(
        self,
        source: Any,
        schema: Optional[Schema] = None,
        encoding: Optional[str] = "utf-8",
    ) -> Iterator[Row]:
        """
        Lazily parse a binary/text file-like object or an iterable of lines.
        The delimiter is sniffed from the header line only.
        """
        if isinstance(source, (str, bytes, bytearray)):
            raise ArgumentError("parse_stream expects a file-like object or an iterable of lines")
        encoding = encoding or "utf-8"
        try:
            codecs.lookup(encoding)
        except LookupError as e:
            raise ParseError(f"Failed to parse CSV stream: {e}") from e
        return self._stream_rows(source, schema, encoding)

    def _stream_rows(self, source: Any, schema: Optional[Schema], encoding: str) -> Iterator[Row]:
        lines = _iter_source_lines(source, encoding, self.options.buffer_size)
        try:
            yield from self._iter_records(lines, schema)
        except CSVError:
            raise
        except Exception as e:
            raise ParseError(f"Failed to parse CSV stream: {e}") from e

    async def parse_text_async(self, text: Optional[str], schema: Optional[Schema] = None) -> List[Row]:
        return await asyncio.to_thread(self.parse_text, text, schema)

    async def parse_file_async(
        self,
        path: Union[str, Path],
        schema: Optional[Schema] = None,
        encoding: Optional[str] = None,
    ) -> List[Row]:
        return await asyncio.to_thread(self.parse_file, path, schema, encoding)

    async def parse_stream_async(
        self,
        source: Any,
        schema: Optional[Schema] = None,
        encoding: Optional[str] = "utf-8",
    ) -> AsyncIterator[Row]:
        rows = self.parse_stream(source, schema, encoding)
        done = object()
        while True:
            row = await asyncio.to_thread(next, rows, done)
            if row is done:
                return
            yield row

    def _iter_records(
        self,
        lines: Iterable[str],
        schema: Optional[Schema],
        *,
        sniff_text: Optional[str] = None,
    ) -> Iterator[Row]:
        opts = self.options
        numbered = ((idx, line) for idx, line in enumerate(lines, start=1) if line)

        first = next(numbered, None)
        if first is None:
            return
        first = (first[0], _strip_bom(first[1]))

        delimiter = opts.delimiter
        if delimiter is None:
            if sniff_text is not None:
                delimiter = detect_delimiter(sniff_text, opts.sample_lines, quote_char=opts.quote_char)
            else:
                delimiter = detect_delimiter(first[1], 1, quote_char=opts.quote_char)
            logger.debug("Detected delimiter %r", delimiter)

        fields = tokenize(first[1], delimiter, opts.quote_char, trim=opts.trim_whitespace)
        if opts.has_headers:
            headers = fields
        else:
            headers = [f"Column{i}" for i in range(1, len(fields) + 1)]
            numbered = itertools.chain([first], numbered)
        logger.debug("Columns: %s", headers)

        if schema is not None:
            schema.validate_headers(headers)

        accumulate = opts.validation_mode is ValidationMode.ACCUMULATE
        errors: List[ValidationError] = []

        for idx, line in numbered:
            if opts.skip_empty_lines and line.isspace():
                continue
            row = _assemble_row(
                headers, tokenize(line, delimiter, opts.quote_char, trim=opts.trim_whitespace)
            )
            if schema is not None:
                if accumulate:
                    row_errors = schema.row_errors(row, idx)
                    if row_errors:
                        errors.extend(row_errors)
                        continue
                else:
                    schema.validate_row(row, idx)
            yield row

        if errors:
            logger.warning("Validation finished with %d error(s)", len(errors))
            raise ValidationErrors(errors)


# ----------------------------
# Convenience functions
# ----------------------------

def parse_text(
    text: Optional[str],
    schema: Optional[Schema] = None,
    *,
    options: Optional[ParsingOptions] = None,
) -> List[Row]:
    return CSVParser(options).parse_text(text, schema)


def parse_file(
    path: Union[str, Path],
    schema: Optional[Schema] = None,
    encoding: Optional[str] = None,
    *,
    options: Optional[ParsingOptions] = None,
) -> List[Row]:
    return CSVParser(options).parse_file(path, schema, encoding)


def parse_stream(
    source: Any,
    schema: Optional[Schema] = None,
    encoding: Optional[str] = "utf-8",
    *,
    options: Optional[ParsingOptions] = None,
) -> Iterator[Row]:
    return CSVParser(options).parse_stream(source, schema, encoding)


__all__ = [
    "CSVError",
    "NotFoundError",
    "ParseError",
    "TemplateError",
    "ValidationError",
    "ValidationErrors",
    "ArgumentError",
    "TypeDialect",
    "DEFAULT_TYPE_DIALECT",
    "ColumnType",
    "ValidationRule",
    "ColumnSchema",
    "Schema",
    "ValidationMode",
    "ParsingOptions",
    "DEFAULT_OPTIONS",
    "CSVParser",
    "CANDIDATE_DELIMITERS",
    "Row",
    "__version__",
    "convert_value",
    "detect_encoding",
    "detect_file_encoding",
    "detect_delimiter",
    "tokenize",
    "parse_text",
    "parse_file",
    "parse_stream",
]
