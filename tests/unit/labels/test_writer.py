"""Tests for label output destinations (path guard, suffix, replace prompt, write)."""

from __future__ import annotations

import pytest

from pinv.errors import PinvValidationError
from pinv.labels.writer import LabelOutput


def test_relative_path_inside_base(tmp_path):
    target = LabelOutput.from_arg("labels/a.svg", base=tmp_path)
    assert target.path == (tmp_path / "labels" / "a.svg").resolve()


def test_traversal_rejected(tmp_path):
    with pytest.raises(PinvValidationError, match="traversal"):
        LabelOutput.from_arg("../../etc/label.svg", base=tmp_path)


def test_absolute_path_accepted(tmp_path):
    target = tmp_path / "out.svg"
    assert LabelOutput.from_arg(str(target)).path == target.resolve()


@pytest.mark.parametrize("name", ["label.png", "label.svg.gz", "label"])
def test_non_svg_output_rejected(tmp_path, name):
    with pytest.raises(PinvValidationError, match=".svg"):
        LabelOutput.from_arg(name, base=tmp_path)


def test_suffix_case_insensitive(tmp_path):
    assert LabelOutput.from_arg("LABEL.SVG", base=tmp_path).path.name == "LABEL.SVG"


def test_may_write_new_file(tmp_path):
    assert LabelOutput(tmp_path / "new.svg").may_write(yes=False) is True


def test_may_write_existing_with_yes(tmp_path):
    existing = tmp_path / "old.svg"
    existing.write_text("x")
    assert LabelOutput(existing).may_write(yes=True) is True


def test_write_creates_parents(tmp_path):
    target = LabelOutput(tmp_path / "a" / "b" / "label.svg")
    target.write(b"<svg/>")
    assert target.path.read_bytes() == b"<svg/>"


def test_write_replaces_and_leaves_no_staging_files(tmp_path):
    target = LabelOutput(tmp_path / "label.svg")
    target.write(b"one")
    target.write(b"two")
    assert target.path.read_bytes() == b"two"
    assert [p.name for p in tmp_path.iterdir()] == ["label.svg"]
