"""Persistence of the published population matrices.

Both wide tables are written with the same CSV conventions (no index,
empty field for missing shares, ``\\n`` line endings) so that re-running
the pipeline on unchanged input yields byte-identical files.  Writes go
through a temporary sibling file that is renamed into place, and the two
tables are only renamed once both have been written successfully.  If a
rename fails, the previous outputs are restored.
"""

import logging
from pathlib import Path
from typing import Dict, List, Mapping

import pandas as pd

from .config import SEX_AGE_RACE_DIS_FILE, SEX_AGE_RACE_FILE

logger = logging.getLogger(__name__)

# Payload key -> output file name
OUTPUT_FILES: Dict[str, str] = {
    "sex_age_race_wide": SEX_AGE_RACE_FILE,
    "sex_age_race_dis_wide": SEX_AGE_RACE_DIS_FILE,
}


def _tmp_path(path: Path) -> Path:
    return path.with_suffix(path.suffix + ".tmp")


def _to_csv(df: pd.DataFrame, path: Path) -> None:
    df.to_csv(path, index=False, na_rep="", lineterminator="\n")


def write_matrices(
    payload: Mapping[str, object], output_dir: str | Path = "."
) -> Dict[str, Path]:
    """Write both wide tables from a :func:`~nyc_pop_matrix.pipeline.run_pipeline` payload.

    Either both files are written or neither is replaced.

    Parameters
    ----------
    payload : Mapping[str, object]
        Must contain the ``sex_age_race_wide`` and ``sex_age_race_dis_wide``
        DataFrames.
    output_dir : str or Path, optional
        Target directory; created if missing.

    Returns
    -------
    Dict[str, Path]
        Payload key -> path of the written file.
    """
    out_dir = Path(output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    targets = {key: out_dir / name for key, name in OUTPUT_FILES.items()}
    staged = {key: _tmp_path(path) for key, path in targets.items()}
    try:
        for key, tmp_path in staged.items():
            _to_csv(payload[key], tmp_path)
    except Exception:
        # Leave any existing outputs untouched.
        for tmp_path in staged.values():
            tmp_path.unlink(missing_ok=True)
        raise

    backups: Dict[str, Path] = {}
    promoted: List[str] = []
    try:
        for key, tmp_path in staged.items():
            target = targets[key]
            if target.exists():
                backups[key] = target.with_suffix(target.suffix + ".bak")
                target.replace(backups[key])
            tmp_path.replace(target)
            promoted.append(key)
    except Exception:
        # Roll back to the previous outputs.
        for key in promoted:
            if key not in backups:
                targets[key].unlink(missing_ok=True)
        for key, backup in backups.items():
            backup.replace(targets[key])
        for tmp_path in staged.values():
            tmp_path.unlink(missing_ok=True)
        raise

    for backup in backups.values():
        backup.unlink()
    for target in targets.values():
        logger.info("Wrote %s", target)
    return targets
