"""Tests for the manifest loader."""

import json

import pytest
import yaml

from conftest import POP_FEATURES
from trackgrade.core.loader import TrackLoader, create_track_loader
from trackgrade.utils.errors import (
    InvalidFeatureVectorError,
    TrackLoadError,
    UnsupportedFormatError,
)


@pytest.fixture
def loader():
    return TrackLoader()


def write_yaml(path, document):
    path.write_text(yaml.safe_dump(document), encoding="utf-8")
    return path


class TestLoad:
    def test_yaml_manifest(self, loader, tmp_path):
        path = write_yaml(tmp_path / "tracks.yaml", {
            "genre": "R&B",
            "stage": "mixing",
            "tracks": [
                {"name": "First", "features": POP_FEATURES},
                {"name": "Second", "genre": "Pop", "stage": "mastered", "features": POP_FEATURES},
            ],
        })
        tracks = loader.load(path)

        assert [t.name for t in tracks] == ["First", "Second"]
        assert (tracks[0].genre, tracks[0].stage) == ("R&B", "mixing")
        assert (tracks[1].genre, tracks[1].stage) == ("Pop", "mastered")
        assert tracks[0].features.tempo_bpm == 115.0

    def test_json_manifest(self, loader, tmp_path):
        path = tmp_path / "tracks.json"
        path.write_text(json.dumps({"tracks": [{"features": POP_FEATURES}]}), encoding="utf-8")
        [track] = loader.load(str(path))
        assert track.name == "Track 1"
        assert track.genre is None
        assert track.stage is None

    def test_unsupported_suffix(self, loader, tmp_path):
        path = tmp_path / "tracks.csv"
        path.write_text("tempo_bpm\n120\n", encoding="utf-8")
        with pytest.raises(UnsupportedFormatError) as exc_info:
            loader.load(path)
        assert exc_info.value.format == ".csv"

    def test_missing_file(self, loader, tmp_path):
        with pytest.raises(TrackLoadError, match="not found"):
            loader.load(tmp_path / "missing.yaml")

    def test_too_large(self, tmp_path):
        path = write_yaml(tmp_path / "tracks.yaml", {"tracks": [{"features": POP_FEATURES}]})
        with pytest.raises(TrackLoadError, match="too large"):
            TrackLoader(max_file_size=10).load(path)

    def test_malformed_yaml(self, loader, tmp_path):
        path = tmp_path / "tracks.yaml"
        path.write_text("tracks: [unclosed\n", encoding="utf-8")
        with pytest.raises(TrackLoadError, match="Malformed"):
            loader.load(path)

    def test_invalid_features_name_the_track(self, loader, tmp_path):
        path = write_yaml(tmp_path / "tracks.yaml", {
            "tracks": [{"name": "Loud One", "features": {**POP_FEATURES, "energy": 1.5}}],
        })
        with pytest.raises(InvalidFeatureVectorError) as exc_info:
            loader.load(path)
        assert exc_info.value.message.startswith("Track 'Loud One': ")
        assert exc_info.value.field_name == "energy"

    def test_validation_can_be_skipped(self, tmp_path):
        path = write_yaml(tmp_path / "tracks.yaml", {
            "tracks": [{"features": {**POP_FEATURES, "energy": 1.5}}],
        })
        [track] = TrackLoader(validate=False).load(path)
        assert track.features.energy == 1.5


class TestParse:
    @pytest.mark.parametrize("document", [None, [], "tracks", {"tracks": []}, {"songs": [1]}])
    def test_rejects_bad_documents(self, loader, document):
        with pytest.raises(TrackLoadError):
            loader.parse(document)

    def test_entry_must_be_mapping(self, loader):
        with pytest.raises(TrackLoadError, match="#2"):
            loader.parse({"tracks": [{"features": POP_FEATURES}, "oops"]})

    def test_features_required(self, loader):
        with pytest.raises(TrackLoadError, match="features"):
            loader.parse({"tracks": [{"name": "Empty"}]})

    def test_blank_labels_fall_back(self, loader):
        [track] = loader.parse({
            "genre": "Pop",
            "tracks": [{"name": "  ", "genre": "", "features": POP_FEATURES}],
        })
        assert track.name == "Track 1"
        assert track.genre == "Pop"


def test_factory():
    loader = create_track_loader({"max_file_size": 1024, "validate": False})
    assert loader.max_file_size == 1024
    assert loader.validate is False
    assert create_track_loader().validate is True
