"""Tests for the tiffnii command line entry point."""

from __future__ import annotations

import numpy as np

from tiffnii import ConversionConfig
from tiffnii.cli import main
from tiffnii.nifti.header import decode_header


def _write_tiff(path, make_tiff, shape=(3, 4, 5)) -> None:
    path.write_bytes(make_tiff(np.ones(shape, dtype=np.uint8), photometric='minisblack'))


def test_convert_single_file(make_tiff, tmp_path, capsys) -> None:
    source = tmp_path / "cells.tif"
    _write_tiff(source, make_tiff)

    assert main([str(source)]) == 0
    assert (tmp_path / "cells.nii").exists()
    assert "Saved" in capsys.readouterr().out


def test_output_dir_is_created(make_tiff, tmp_path) -> None:
    source = tmp_path / "cells.tif"
    _write_tiff(source, make_tiff)
    out_dir = tmp_path / "out" / "nifti"

    assert main([str(source), "--output-dir", str(out_dir)]) == 0
    assert (out_dir / "cells.nii").exists()


def test_config_file_sets_description(make_tiff, tmp_path) -> None:
    source = tmp_path / "cells.tif"
    _write_tiff(source, make_tiff)
    settings = tmp_path / "settings.yaml"
    ConversionConfig(description="confocal").save(settings)

    assert main([str(source), "--config", str(settings)]) == 0
    assert decode_header((tmp_path / "cells.nii").read_bytes()).descrip == b'confocal'


def test_batch_directory_reports_failures(make_tiff, tmp_path, capsys) -> None:
    _write_tiff(tmp_path / "a.tif", make_tiff)
    (tmp_path / "b.tif").write_bytes(b'garbage')

    assert main([str(tmp_path)]) == 1
    out = capsys.readouterr().out
    assert "1 successful, 1 failed" in out
    assert "b.tif" in out
    assert (tmp_path / "a.nii").exists()


def test_batch_directory_all_good(make_tiff, tmp_path) -> None:
    _write_tiff(tmp_path / "a.tif", make_tiff)
    _write_tiff(tmp_path / "b.tiff", make_tiff)
    out_dir = tmp_path / "out"

    assert main([str(tmp_path), "--output-dir", str(out_dir)]) == 0
    assert sorted(p.name for p in out_dir.iterdir()) == ["a.nii", "b.nii"]


def test_info_prints_header(make_tiff, tmp_path, capsys) -> None:
    source = tmp_path / "cells.tif"
    _write_tiff(source, make_tiff)
    main([str(source)])
    capsys.readouterr()

    assert main([str(tmp_path / "cells.nii"), "--info"]) == 0
    out = capsys.readouterr().out
    assert "dim:        5 x 4 x 3" in out
    assert "UINT8" in out


def test_info_rejects_non_nifti(tmp_path) -> None:
    path = tmp_path / "x.nii"
    path.write_bytes(b'short')
    assert main([str(path), "--info"]) == 1


def test_missing_path(tmp_path) -> None:
    assert main([str(tmp_path / "missing.tif")]) == 1


def test_conversion_error_returns_one(make_tiff, tmp_path) -> None:
    source = tmp_path / "wide.tif"
    source.write_bytes(make_tiff(np.zeros((2, 4, 5), dtype=np.uint64), photometric='minisblack'))
    assert main([str(source)]) == 1
