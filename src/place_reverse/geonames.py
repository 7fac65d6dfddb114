"""
GeoNames dump reader.

Parses the tab-separated files published at
http://download.geonames.org/export/dump/ into GeoName records, either from
a plain text file or from the zip archives the dump is distributed in.

Column layout (0-based) of the fields used here:
- 0: geonameid
- 1: name
- 4: latitude
- 5: longitude
- 6: feature class
- 7: feature code
- 8: country code
- 10: admin1 code
- 14: population
"""

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, TextIO, Tuple, Union
import zipfile

from .errors import MalformedDatasetError, MalformedRecordError
from .geoname import GeoName


logger = logging.getLogger(__name__)

MIN_COLUMNS = 15

# Archive entries that never hold place data
NON_DATA_ENTRIES = frozenset({"readme.txt"})


@dataclass
class IngestConfig:
    """Configuration for reading a GeoNames dump."""

    major_only: bool = False
    """Drop records that are not major places."""

    min_population: int = 0
    """Minimum population for a record to count as a major place."""

    major_feature_classes: Tuple[str, ...] = ("P",)
    """Feature classes that can count as major places (P = populated place)."""

    strict: bool = False
    """Abort on the first malformed line instead of skipping it."""

    encoding: str = "utf-8"
    """Text encoding of the dump."""

    def __post_init__(self):
        if self.min_population < 0:
            raise ValueError("min_population must be non-negative")
        if isinstance(self.major_feature_classes, str):
            self.major_feature_classes = (self.major_feature_classes,)
        self.major_feature_classes = tuple(self.major_feature_classes)
        if not self.major_feature_classes:
            raise ValueError("major_feature_classes must not be empty")


def is_major_place(feature_class: str, population: int, config: IngestConfig) -> bool:
    """Decide whether a place counts as major under the given config."""
    return (
        feature_class in config.major_feature_classes
        and population >= config.min_population
    )


def parse_line(
    line: str,
    config: Optional[IngestConfig] = None,
    line_number: Optional[int] = None,
) -> GeoName:
    """
    Parse one dump line into a GeoName.

    Args:
        line: A single tab-separated line (trailing newline allowed)
        config: Ingest configuration used to classify major places
        line_number: 1-based line number, for error messages

    Returns:
        The parsed record

    Raises:
        MalformedRecordError: if the line lacks columns or holds invalid values
    """
    config = config or IngestConfig()
    fields = line.rstrip("\r\n").split("\t")
    if len(fields) < MIN_COLUMNS:
        raise MalformedRecordError(
            f"expected at least {MIN_COLUMNS} columns, got {len(fields)}",
            line_number, line,
        )

    try:
        geoname_id = int(fields[0]) if fields[0] else 0
        latitude = float(fields[4])
        longitude = float(fields[5])
        population = int(fields[14]) if fields[14].strip() else 0
    except ValueError as e:
        raise MalformedRecordError(str(e), line_number, line) from e

    feature_class = fields[6].strip()
    try:
        return GeoName(
            name=fields[1],
            latitude=latitude,
            longitude=longitude,
            major_place=is_major_place(feature_class, population, config),
            country_code=fields[8].strip(),
            admin1_code=fields[10].strip(),
            population=population,
            feature_class=feature_class,
            feature_code=fields[7].strip(),
            geoname_id=geoname_id,
        )
    except ValueError as e:
        raise MalformedRecordError(str(e), line_number, line) from e


def _decode(line: Union[str, bytes], config: IngestConfig, line_number: int) -> str:
    """Decode a raw line, reporting undecodable bytes as a malformed record."""
    if isinstance(line, str):
        return line
    try:
        return line.decode(config.encoding)
    except UnicodeDecodeError as e:
        raise MalformedRecordError(
            f"cannot decode as {config.encoding}: {e.reason}",
            line_number, line.decode(config.encoding, errors="replace"),
        ) from e


def read_geonames(
    stream: Union[TextIO, BinaryIO],
    config: Optional[IngestConfig] = None,
) -> Iterator[GeoName]:
    """
    Iterate over the records of a text or binary stream.

    Binary streams are decoded line by line with config.encoding, so a line
    with invalid bytes is just another malformed line. Blank lines and lines
    starting with '#' are ignored. Malformed lines are logged and skipped
    unless config.strict is set, in which case the MalformedRecordError
    propagates.

    Args:
        stream: Stream positioned at the start of the data
        config: Ingest configuration

    Yields:
        GeoName records that pass the major-place filter
    """
    config = config or IngestConfig()
    skipped = 0

    for line_number, raw in enumerate(stream, start=1):
        try:
            line = _decode(raw, config, line_number)
            if not line.strip() or line.startswith("#"):
                continue
            record = parse_line(line, config, line_number)
        except MalformedRecordError as e:
            if config.strict:
                raise
            skipped += 1
            logger.warning("Skipping malformed record: %s", e)
            continue

        if config.major_only and not record.major_place:
            continue
        yield record

    if skipped:
        logger.info("Skipped %d malformed records", skipped)


def find_data_entry(archive: zipfile.ZipFile) -> zipfile.ZipInfo:
    """
    Find the entry holding place data in a dump archive.

    Country archives carry a readme.txt next to the data file; the first entry
    that is neither a directory nor a known non-data file is returned.

    Raises:
        MalformedDatasetError: if the archive has no data entry
    """
    for info in archive.infolist():
        if info.is_dir():
            continue
        basename = info.filename.rsplit("/", 1)[-1].lower()
        if basename in NON_DATA_ENTRIES:
            continue
        return info

    raise MalformedDatasetError(
        f"No data entry found in archive {archive.filename or '<stream>'}"
    )


def _is_zip_stream(fileobj: BinaryIO) -> bool:
    """Check for a zip archive without moving the stream position."""
    position = fileobj.tell()
    try:
        return zipfile.is_zipfile(fileobj)
    finally:
        fileobj.seek(position)


def _load_binary(source: Union[Path, BinaryIO], is_zip: bool, config: IngestConfig) -> List[GeoName]:
    """Read records from an opened or named source, unwrapping zip archives."""
    if is_zip:
        with zipfile.ZipFile(source, "r") as zf:
            entry = find_data_entry(zf)
            logger.debug("Reading %s from archive", entry.filename)
            with zf.open(entry) as raw:
                return list(read_geonames(raw, config))

    if isinstance(source, Path):
        with open(source, "rb") as f:
            return list(read_geonames(f, config))
    return list(read_geonames(source, config))


def load_geonames(
    source: Union[str, Path, BinaryIO],
    config: Optional[IngestConfig] = None,
) -> List[GeoName]:
    """
    Load all records from a dump.

    Args:
        source: Path to a .txt dump or a .zip archive containing one, or a
            seekable binary file object holding either
        config: Ingest configuration

    Returns:
        List of records that pass the major-place filter

    Raises:
        FileNotFoundError: if a path does not exist
        MalformedDatasetError: if a zip archive has no data entry
        MalformedRecordError: on a bad line when config.strict is set
    """
    config = config or IngestConfig()

    if hasattr(source, "read"):
        name = getattr(source, "name", "<stream>")
        records = _load_binary(source, _is_zip_stream(source), config)
    else:
        name = source = Path(source)
        if not source.exists():
            raise FileNotFoundError(f"Could not find dataset {source}")
        records = _load_binary(source, zipfile.is_zipfile(source), config)

    logger.info("Loaded %d records from %s", len(records), name)
    return records
