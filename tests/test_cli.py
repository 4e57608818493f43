from __future__ import annotations

import pytest

import asebuild
from asebuild import save_bytes
from asecli.main import main
from libase.reader import read_ase


@pytest.fixture
def ase_path(tmp_path, rgb_doc):
    path = tmp_path / "anim.ase"
    path.write_bytes(save_bytes(rgb_doc))
    return path


def test_summary(ase_path, capsys):
    assert main(["summary", str(ase_path)]) == 0
    out = capsys.readouterr().out
    assert "Background" in out
    assert "32x16" in out


def test_dump(ase_path, capsys):
    assert main(["dump", str(ase_path)]) == 0
    out = capsys.readouterr().out
    assert "frame[002]" in out
    assert "LAYER" in out


def test_verify_roundtrip(ase_path, tmp_path, capsys):
    out_path = tmp_path / "again.ase"
    assert main(["verify-roundtrip", str(ase_path), "--out", str(out_path)]) == 0
    assert "IDENTICAL" in capsys.readouterr().out
    assert out_path.read_bytes() == ase_path.read_bytes()


def test_resave_one_frame(ase_path, tmp_path):
    out_path = tmp_path / "first.ase"
    assert main(["resave", str(ase_path), "--out", str(out_path), "--one-frame", "--level", "9"]) == 0
    doc = read_ase(out_path)
    assert doc.total_frames == 1
    assert [l.name for l in doc.layers()][0] == b"Background"


def test_missing_input(tmp_path):
    assert main(["summary", str(tmp_path / "nope.ase")]) == 2


def test_broken_file(tmp_path):
    path = tmp_path / "bad.ase"
    path.write_bytes(b"\0" * 200)
    assert main(["-v", "dump", str(path)]) == 1


def test_bad_palette_size_is_reported_not_raised(tmp_path):
    path = tmp_path / "wide.ase"
    path.write_bytes(asebuild.ase_file([asebuild.frame([])], ncolors=300))
    assert main(["resave", str(path), "--out", str(tmp_path / "out.ase")]) == 1
    assert main(["verify-roundtrip", str(path)]) == 1
