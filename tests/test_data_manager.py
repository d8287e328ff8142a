from pathlib import Path

import pandas as pd
import pytest

from nyc_pop_matrix.config import SEX_AGE_RACE_DIS_FILE, SEX_AGE_RACE_FILE
from nyc_pop_matrix.data_manager import write_matrices
from nyc_pop_matrix.pipeline import run_pipeline


def test_write_matrices_writes_both_tables(two_person_records, write_csv, tmp_path):
    payload = run_pipeline(source=write_csv(two_person_records))
    out_dir = tmp_path / "out"

    paths = write_matrices(payload, out_dir)

    assert paths["sex_age_race_wide"] == out_dir / SEX_AGE_RACE_FILE
    assert paths["sex_age_race_dis_wide"] == out_dir / SEX_AGE_RACE_DIS_FILE
    assert not list(out_dir.glob("*.tmp"))

    lines = paths["sex_age_race_wide"].read_text().splitlines()
    assert lines[0] == (
        "age_band,sex,White,Asian,Mixed_race,Hispanic,Black_hispanic,Black,Native_american"
    )
    assert lines[1].startswith("19_64,Male,66.66666666666")
    # Unobserved combinations are empty, not zero.
    assert lines[1].endswith(",,,,,,")
    assert lines[2].startswith("65_+,Female,,,,,33.33333333333")
    assert lines[2].endswith(",,")

    dis_lines = paths["sex_age_race_dis_wide"].read_text().splitlines()
    assert dis_lines[0].startswith("has_disability,age_band,sex,White")
    assert dis_lines[0].endswith(",Other")
    assert dis_lines[1].startswith("False,19_64,Male,")


def test_round_trip_keeps_missing_cells(two_person_records, write_csv, tmp_path):
    payload = run_pipeline(source=write_csv(two_person_records))
    paths = write_matrices(payload, tmp_path / "out")

    reread = pd.read_csv(paths["sex_age_race_wide"])
    assert reread["Asian"].isna().all()
    assert reread["White"].iloc[0] == pytest.approx(200 / 3)


def test_rerun_is_byte_identical(sample_records, write_csv, tmp_path):
    source = write_csv(sample_records)
    first = write_matrices(run_pipeline(source=source), tmp_path / "a")
    second = write_matrices(run_pipeline(source=source), tmp_path / "b")

    for key in first:
        assert first[key].read_bytes() == second[key].read_bytes()


def test_shuffled_input_is_byte_identical(sample_records, write_csv, tmp_path):
    ordered = write_matrices(
        run_pipeline(source=write_csv(sample_records, "ordered.csv")), tmp_path / "a"
    )
    shuffled_source = write_csv(
        sample_records.sample(frac=1, random_state=7), "shuffled.csv"
    )
    shuffled = write_matrices(run_pipeline(source=shuffled_source), tmp_path / "b")

    for key in ordered:
        assert ordered[key].read_bytes() == shuffled[key].read_bytes()


def test_failed_write_leaves_existing_outputs(two_person_records, write_csv, tmp_path):
    payload = run_pipeline(source=write_csv(two_person_records))
    out_dir = tmp_path / "out"
    paths = write_matrices(payload, out_dir)
    before = {key: path.read_bytes() for key, path in paths.items()}

    broken = dict(payload)
    broken["sex_age_race_dis_wide"] = None
    with pytest.raises(AttributeError):
        write_matrices(broken, out_dir)

    assert {key: path.read_bytes() for key, path in paths.items()} == before
    assert not list(out_dir.glob("*.tmp"))


def _fail_replace_of(monkeypatch, name: str) -> None:
    """Make ``Path.replace`` raise when moving the staged file ``name``."""
    original = Path.replace

    def replace(self, target):
        if self.name == name:
            raise PermissionError(f"cannot rename {self}")
        return original(self, target)

    monkeypatch.setattr(Path, "replace", replace)


def test_failed_rename_restores_previous_outputs(
    two_person_records, sample_records, write_csv, tmp_path, monkeypatch
):
    out_dir = tmp_path / "out"
    paths = write_matrices(
        run_pipeline(source=write_csv(two_person_records, "old.csv")), out_dir
    )
    before = {key: path.read_bytes() for key, path in paths.items()}

    _fail_replace_of(monkeypatch, SEX_AGE_RACE_DIS_FILE + ".tmp")
    with pytest.raises(PermissionError):
        write_matrices(run_pipeline(source=write_csv(sample_records, "new.csv")), out_dir)

    assert {key: path.read_bytes() for key, path in paths.items()} == before
    assert sorted(p.name for p in out_dir.iterdir()) == sorted(
        [SEX_AGE_RACE_FILE, SEX_AGE_RACE_DIS_FILE]
    )


def test_failed_rename_without_previous_outputs_writes_nothing(
    two_person_records, write_csv, tmp_path, monkeypatch
):
    out_dir = tmp_path / "out"
    payload = run_pipeline(source=write_csv(two_person_records))

    _fail_replace_of(monkeypatch, SEX_AGE_RACE_DIS_FILE + ".tmp")
    with pytest.raises(PermissionError):
        write_matrices(payload, out_dir)

    assert list(out_dir.iterdir()) == []
