"""Tests for file-name normalisation helpers."""

from __future__ import annotations

import pytest

from photo_map.utils.text import (
    base_key,
    filename_key,
    normalize_text,
    query_from_filename,
    strip_extension,
    title_from_filename,
)


class TestNormalizeText:
    def test_lowercases_and_strips_diacritics(self) -> None:
        assert normalize_text("Sucevița") == "sucevita"
        assert normalize_text("Săpânța") == "sapanta"

    def test_empty(self) -> None:
        assert normalize_text("") == ""


class TestFilenameKey:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Cheile_Bicazului-2.JPG", "cheile bicazului 2"),
            ("viscri.church.jpeg", "viscri church"),
            ("  Breb   sunrise .png", "breb sunrise"),
            ("Biserica din Săpânța.jpg", "biserica din sapanta"),
        ],
    )
    def test_examples(self, name: str, expected: str) -> None:
        assert filename_key(name) == expected

    def test_may_be_empty(self) -> None:
        assert filename_key(".jpg") == ""
        assert filename_key("___.jpg") == ""

    def test_deterministic(self) -> None:
        assert filename_key("Praid Salt Mine.jpg") == filename_key("Praid Salt Mine.jpg")


class TestOtherKeys:
    def test_strip_extension_only_last(self) -> None:
        assert strip_extension("a.b.jpg") == "a.b"
        assert strip_extension("noext") == "noext"

    def test_base_key(self) -> None:
        assert base_key("IMG_0001.JPG") == "img_0001"

    def test_query_keeps_case_and_diacritics(self) -> None:
        assert query_from_filename("Biserica_Săpânța-1.jpg") == "Biserica Săpânța 1"

    def test_title(self) -> None:
        assert title_from_filename("viscri_church-tower.jpg") == "Viscri Church Tower"
