"""Tests for the GeoNames dump reader."""

import io
import logging
import zipfile

import pytest
from place_reverse.errors import MalformedDatasetError, MalformedRecordError
from place_reverse.geonames import (
    IngestConfig,
    find_data_entry,
    is_major_place,
    load_geonames,
    parse_line,
    read_geonames,
)


class TestIngestConfig:
    """Tests for IngestConfig."""

    def test_default_config(self):
        """Test default configuration values."""
        config = IngestConfig()
        assert config.major_only is False
        assert config.min_population == 0
        assert config.major_feature_classes == ("P",)
        assert config.strict is False
        assert config.encoding == "utf-8"

    def test_string_feature_class(self):
        """Test a single class string is wrapped in a tuple."""
        assert IngestConfig(major_feature_classes="A").major_feature_classes == ("A",)

    def test_invalid_population(self):
        """Test that a negative threshold raises error."""
        with pytest.raises(ValueError):
            IngestConfig(min_population=-1)

    def test_empty_feature_classes(self):
        """Test that an empty class list raises error."""
        with pytest.raises(ValueError):
            IngestConfig(major_feature_classes=())


class TestIsMajorPlace:
    """Tests for the major place classification."""

    def test_populated_place(self):
        """Test feature class P counts by default."""
        assert is_major_place("P", 0, IngestConfig())

    def test_other_class(self):
        """Test other feature classes do not count."""
        assert not is_major_place("H", 1000000, IngestConfig())

    def test_population_threshold(self):
        """Test the population threshold is inclusive."""
        config = IngestConfig(min_population=1000)
        assert is_major_place("P", 1000, config)
        assert not is_major_place("P", 999, config)


class TestParseLine:
    """Tests for parse_line."""

    def test_fields(self, make_line):
        """Test every used column is mapped."""
        g = parse_line(make_line(4544349, "Salina", 38.84, -97.61, population=46994))
        assert g.geoname_id == 4544349
        assert g.name == "Salina"
        assert g.latitude == 38.84
        assert g.longitude == -97.61
        assert g.feature_class == "P"
        assert g.feature_code == "PPL"
        assert g.country_code == "US"
        assert g.admin1_code == "KS"
        assert g.population == 46994
        assert g.major_place is True

    def test_minor_place(self, make_line):
        """Test non-populated features are minor."""
        g = parse_line(make_line(feature_class="T", feature_code="MT"))
        assert g.major_place is False

    def test_empty_population(self, make_line):
        """Test an empty population column reads as zero."""
        line = make_line().replace("\t0\t\t400", "\t\t\t400")
        assert parse_line(line).population == 0

    def test_too_few_columns(self):
        """Test short lines raise MalformedRecordError."""
        with pytest.raises(MalformedRecordError):
            parse_line("1\tName\t\t\t1.0\t2.0\n")

    def test_bad_latitude(self, make_line):
        """Test non-numeric latitude raises MalformedRecordError."""
        with pytest.raises(MalformedRecordError) as excinfo:
            parse_line(make_line(lat="north"), line_number=12)
        assert excinfo.value.line_number == 12
        assert "line 12" in str(excinfo.value)

    def test_out_of_range(self, make_line):
        """Test out-of-range coordinates raise MalformedRecordError."""
        with pytest.raises(MalformedRecordError):
            parse_line(make_line(lat=91.0))

        with pytest.raises(MalformedRecordError):
            parse_line(make_line(lon="nan"))

    def test_crlf(self, make_line):
        """Test Windows line endings are stripped."""
        g = parse_line(make_line(name="X").replace("\n", "\r\n"))
        assert g.geoname_id == 1


class TestReadGeonames:
    """Tests for read_geonames."""

    def test_reads_all(self, sample_dump):
        """Test all records are read by default."""
        records = list(read_geonames(io.StringIO(sample_dump)))
        assert [r.name for r in records] == ["Salina", "Smoky Hill River", "Lincoln", "Hamlet"]

    def test_major_only(self, sample_dump):
        """Test minor places are dropped."""
        records = list(read_geonames(io.StringIO(sample_dump), IngestConfig(major_only=True)))
        assert [r.name for r in records] == ["Salina", "Lincoln", "Hamlet"]

    def test_major_only_with_population(self, sample_dump):
        """Test the population threshold applies when filtering."""
        config = IngestConfig(major_only=True, min_population=1000)
        records = list(read_geonames(io.StringIO(sample_dump), config))
        assert [r.name for r in records] == ["Salina", "Lincoln"]

    def test_skips_blank_and_comment_lines(self, sample_dump):
        """Test blank and comment lines are ignored."""
        text = "# header\n\n" + sample_dump + "\n"
        assert len(list(read_geonames(io.StringIO(text)))) == 4

    def test_skips_malformed(self, caplog, make_line):
        """Test malformed lines are logged and skipped."""
        text = make_line(1, "Good") + "garbage\n" + make_line(2, "Also good")
        with caplog.at_level(logging.WARNING, logger="place_reverse.geonames"):
            records = list(read_geonames(io.StringIO(text)))
        assert [r.name for r in records] == ["Good", "Also good"]
        assert "line 2" in caplog.text

    def test_strict_raises(self, make_line):
        """Test strict mode aborts on the first malformed line."""
        text = make_line(1, "Good") + "garbage\n"
        with pytest.raises(MalformedRecordError) as excinfo:
            list(read_geonames(io.StringIO(text), IngestConfig(strict=True)))
        assert excinfo.value.line_number == 2

    def test_binary_stream(self, sample_dump):
        """Test bytes are decoded with the configured encoding."""
        data = sample_dump.replace("Hamlet", "Kärnten").encode("latin-1")
        records = list(read_geonames(io.BytesIO(data), IngestConfig(encoding="latin-1")))
        assert records[-1].name == "Kärnten"

    def test_skips_undecodable(self, caplog, make_line):
        """Test a line with invalid bytes is skipped like any malformed line."""
        data = (
            make_line(1, "Good").encode()
            + b"2\tBad\xff\n"
            + make_line(3, "Also good").encode()
        )
        with caplog.at_level(logging.WARNING, logger="place_reverse.geonames"):
            records = list(read_geonames(io.BytesIO(data)))
        assert [r.name for r in records] == ["Good", "Also good"]
        assert "line 2" in caplog.text

    def test_strict_undecodable(self, make_line):
        """Test strict mode reports invalid bytes as MalformedRecordError."""
        data = make_line(1, "Good").encode() + make_line(2, "Bad").encode()[:-1] + b"\xff\n"
        with pytest.raises(MalformedRecordError) as excinfo:
            list(read_geonames(io.BytesIO(data), IngestConfig(strict=True)))
        assert excinfo.value.line_number == 2


class TestArchives:
    """Tests for zip archive handling."""

    def _write_zip(self, path, entries):
        with zipfile.ZipFile(path, "w") as zf:
            for name, content in entries:
                zf.writestr(name, content)

    def test_data_entry_after_readme(self, tmp_path, sample_dump):
        """Test the readme is skipped in country archives."""
        path = tmp_path / "US.zip"
        self._write_zip(path, [("readme.txt", "about"), ("US.txt", sample_dump)])
        records = load_geonames(path)
        assert len(records) == 4

    def test_readme_case_insensitive(self, tmp_path, sample_dump):
        """Test README in any case and folder is skipped."""
        path = tmp_path / "dump.zip"
        self._write_zip(path, [
            ("dump/", ""),
            ("dump/README.TXT", "about"),
            ("dump/cities.txt", sample_dump),
        ])
        with zipfile.ZipFile(path) as zf:
            assert find_data_entry(zf).filename == "dump/cities.txt"

    def test_single_entry_archive(self, tmp_path, sample_dump):
        """Test archives with only the data entry."""
        path = tmp_path / "cities1000.zip"
        self._write_zip(path, [("cities1000.txt", sample_dump)])
        records = load_geonames(path, IngestConfig(major_only=True, min_population=1000))
        assert [r.name for r in records] == ["Salina", "Lincoln"]

    def test_readme_only_archive(self, tmp_path):
        """Test an archive without data raises MalformedDatasetError."""
        path = tmp_path / "empty.zip"
        self._write_zip(path, [("readme.txt", "about")])
        with pytest.raises(MalformedDatasetError):
            load_geonames(path)

    def test_empty_archive(self, tmp_path):
        """Test an archive with no entries raises MalformedDatasetError."""
        path = tmp_path / "nothing.zip"
        self._write_zip(path, [])
        with pytest.raises(MalformedDatasetError):
            load_geonames(path)

    def test_undecodable_line_in_archive(self, tmp_path, sample_dump, make_line):
        """Test invalid bytes inside an archive entry only drop that line."""
        path = tmp_path / "US.zip"
        data = sample_dump.encode() + b"\xff\xfe\n" + make_line(5, "Abilene").encode()
        self._write_zip(path, [("readme.txt", "about"), ("US.txt", data)])
        records = load_geonames(path)
        assert len(records) == 5
        assert records[-1].name == "Abilene"

    def test_archive_file_object(self, sample_dump):
        """Test an archive can be read from an in-memory buffer."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("readme.txt", "about")
            zf.writestr("US.txt", sample_dump)
        buffer.seek(0)
        records = load_geonames(buffer)
        assert [r.name for r in records] == ["Salina", "Smoky Hill River", "Lincoln", "Hamlet"]
        assert not buffer.closed


class TestLoadGeonames:
    """Tests for load_geonames on plain files."""

    def test_text_file(self, tmp_path, sample_dump):
        """Test reading an uncompressed dump."""
        path = tmp_path / "US.txt"
        path.write_text(sample_dump, encoding="utf-8")
        records = load_geonames(path)
        assert [r.name for r in records][0] == "Salina"

    def test_unicode_names(self, tmp_path, make_line):
        """Test non-ASCII names survive decoding."""
        path = tmp_path / "DE.txt"
        path.write_text(make_line(name="München", lat=48.14, lon=11.58), encoding="utf-8")
        assert load_geonames(str(path))[0].name == "München"

    def test_undecodable_line(self, tmp_path, sample_dump, make_line):
        """Test invalid bytes drop one line instead of the whole load."""
        path = tmp_path / "US.txt"
        path.write_bytes(
            sample_dump.encode() + b"9\tBroken \xff name\n" + make_line(5, "Abilene").encode()
        )
        records = load_geonames(path)
        assert len(records) == 5
        assert [r.name for r in records][-1] == "Abilene"

    def test_undecodable_line_strict(self, tmp_path, sample_dump):
        """Test strict mode fails on invalid bytes with the line number."""
        path = tmp_path / "US.txt"
        path.write_bytes(sample_dump.encode() + b"\xff\n")
        with pytest.raises(MalformedRecordError) as excinfo:
            load_geonames(path, IngestConfig(strict=True))
        assert excinfo.value.line_number == 5

    def test_text_file_object(self, tmp_path, sample_dump):
        """Test an opened binary file is read and left open."""
        path = tmp_path / "US.txt"
        path.write_text(sample_dump, encoding="utf-8")
        with open(path, "rb") as f:
            records = load_geonames(f, IngestConfig(major_only=True))
            assert not f.closed
        assert [r.name for r in records] == ["Salina", "Lincoln", "Hamlet"]

    def test_file_object_from_current_position(self, sample_dump, make_line):
        """Test reading starts where the caller left the stream."""
        buffer = io.BytesIO(make_line(9, "Skipped").encode() + sample_dump.encode())
        buffer.readline()
        records = load_geonames(buffer)
        assert records[0].name == "Salina"
        assert len(records) == 4

    def test_missing_file(self, tmp_path):
        """Test a missing path raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_geonames(tmp_path / "missing.txt")
