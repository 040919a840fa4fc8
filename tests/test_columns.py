from __future__ import annotations

import numpy as np
import pytest

from glider_fusion.records import NumericColumn, TextColumn, assemble_record_set


def test_assemble_sets_text_columns_aside() -> None:
    decoded = assemble_record_set(
        [
            NumericColumn("time", [1.0, 2.0], unit="s"),
            TextColumn("state", ["Surface", None]),
            NumericColumn("depth", np.array([0.5, 1.5])),
        ],
        sources=("a.gli",),
        headers=({"filename": "a.gli"},),
    )

    assert decoded.record_set.variables == ("time", "depth")
    assert decoded.record_set.unit("time") == "s"
    assert decoded.record_set.unit("depth") is None
    assert decoded.text["state"].values == ("Surface", "")
    assert decoded.record_set.headers[0]["filename"] == "a.gli"


def test_assemble_requires_equal_lengths() -> None:
    with pytest.raises(ValueError, match="different lengths"):
        assemble_record_set([NumericColumn("time", [1.0]), TextColumn("state", ["a", "b"])])


def test_assemble_text_only_file_keeps_row_count() -> None:
    decoded = assemble_record_set([TextColumn("state", ["a", "b"])])

    assert decoded.record_set.variables == ()
    assert decoded.record_set.data.shape == (2, 0)
