import logging

import pytest

from scope_raw2csv.convert import convert_sds, convert_tds, join_transfers
from scope_raw2csv.errors import MissingInputError, SampleCountMismatchError, TruncatedPayloadError
from scope_raw2csv.types import SdsCalibration, TableOptions


def _rows(path):
    lines = path.read_text().splitlines()
    return lines[0], [[float(x) for x in line.split(",")] for line in lines[1:]]


@pytest.fixture
def sds_files(tmp_path, sds_preamble, sds_data):
    def make(*channels, **preamble_fields):
        pre = tmp_path / "cap_C1_XXXXXXX_waveform.pre"
        pre.write_bytes(sds_preamble(**preamble_fields))
        paths = []
        for i, codes in enumerate(channels, start=1):
            path = tmp_path / f"cap_C{i}_0000001_waveform.dat"
            path.write_bytes(sds_data(codes))
            paths.append(path)
        return pre, paths

    return make


def test_convert_sds_single_channel(tmp_path, sds_files):
    pre, data = sds_files([120, 130, 125])
    out = tmp_path / "out.csv"
    assert convert_sds(pre, data, str(out)) == 3

    header, rows = _rows(out)
    assert header == "t,v"
    assert [r[0] for r in rows] == [-5.0, -4.5, -4.0]
    assert [r[1] for r in rows] == pytest.approx([0.0480, -0.0504, 0.0500], rel=1e-6)


def test_convert_sds_two_channels(tmp_path, sds_files):
    pre, data = sds_files([0, 25], [50, 231], vert_gain=0.5)
    out = tmp_path / "out.csv"
    convert_sds(pre, data, str(out))
    assert out.read_text().splitlines() == [
        "t,v1,v2",
        "-5.0,0.0,1.0",
        "-4.5,0.5,-0.5",
    ]


def test_convert_sds_raw_codes_without_title(tmp_path, sds_files):
    pre, data = sds_files([120, 130])
    out = tmp_path / "out.csv"
    convert_sds(pre, data, str(out), options=TableOptions(emit_header=False, emit_calibrated_voltage=False))
    assert out.read_text().splitlines() == ["-5.0,120", "-4.5,-126"]


def test_convert_sds_code_per_div_override(tmp_path, sds_files):
    pre, data = sds_files([30], vert_gain=0.5)
    out = tmp_path / "out.csv"
    convert_sds(pre, data, str(out), options=TableOptions(emit_time_column=False), calibration=SdsCalibration(30.0))
    assert out.read_text().splitlines() == ["v", "0.5"]


def test_sample_count_mismatch_writes_no_file(tmp_path, sds_files):
    pre, data = sds_files([1, 2, 3], [1, 2])
    out = tmp_path / "out.csv"
    with pytest.raises(SampleCountMismatchError):
        convert_sds(pre, data, str(out))
    assert not out.exists()


def test_missing_inputs(tmp_path, sds_files):
    pre, data = sds_files([1])
    with pytest.raises(MissingInputError):
        convert_sds(pre, [], str(tmp_path / "out.csv"))
    with pytest.raises(MissingInputError):
        convert_sds(pre, [tmp_path / "nope.dat"], str(tmp_path / "out.csv"))
    with pytest.raises(MissingInputError):
        convert_sds(tmp_path / "nope.pre", data, str(tmp_path / "out.csv"))


def test_count_differs_from_preamble_is_a_warning(tmp_path, sds_files, caplog):
    pre, data = sds_files([1, 2], wave_array_count=3)
    with caplog.at_level(logging.WARNING):
        convert_sds(pre, data, str(tmp_path / "out.csv"))
    assert any("meldet 3" in r.getMessage() for r in caplog.records)


def test_convert_tds_ascii(tmp_path, tds_preamble):
    pre = tmp_path / "tek.pre"
    pre.write_bytes(tds_preamble(ENCdg="ENCDG ASC"))
    dat = tmp_path / "tek.dat"
    dat.write_bytes(b":CURVE 10,20\n")
    out = tmp_path / "out.csv"

    assert convert_tds(pre, dat, str(out), options=TableOptions(precision=5)) == 2
    assert out.read_text().splitlines() == ["t,v", "0,0.4", "1,0.8"]


def test_convert_tds_envelope(tmp_path, tds_preamble):
    pre = tmp_path / "tek.pre"
    pre.write_bytes(tds_preamble(PT_FMT="PT_FMT ENV", BN_Fmt="BN_FMT RI", YMUlt="YMULT 0.5"))
    dat = tmp_path / "tek.dat"
    dat.write_bytes(b"#14" + bytes([2, 254, 4, 252]) + b"\n")
    out = tmp_path / "out.csv"

    convert_tds(pre, dat, str(out), options=TableOptions(separator="\t"))
    assert out.read_text().splitlines() == ["t\tv1\tv2", "0.0\t1.0\t-1.0", "1.0\t2.0\t-2.0"]


def test_join_then_convert(tmp_path, sds_files):
    pre, _ = sds_files([0])
    codes = bytes([10, 20, 30, 40, 50])
    xfers = []
    for i, start in enumerate(range(0, 5, 2)):
        body = codes[start : start + 2]
        path = tmp_path / f"xfer{i}.bin"
        path.write_bytes(f"#9{len(body):09d}".encode("ascii") + body + b"\n\n")
        xfers.append(path)

    dat = tmp_path / "joined.dat"
    assert join_transfers(xfers, dat, total_points=5, chunk_points=2) == 11 + 5 + 2

    out = tmp_path / "out.csv"
    convert_sds(pre, [dat], str(out), options=TableOptions(emit_calibrated_voltage=False, emit_time_column=False))
    assert out.read_text().splitlines() == ["v", "10", "20", "30", "40", "50"]


def test_join_with_missing_transfer(tmp_path):
    path = tmp_path / "xfer0.bin"
    path.write_bytes(b"#9000000002" + b"ab" + b"\n\n")
    with pytest.raises(TruncatedPayloadError):
        join_transfers([path], tmp_path / "joined.dat", total_points=4, chunk_points=2)
    assert not (tmp_path / "joined.dat").exists()


def test_sample_count_mismatch_names_channels(tmp_path, sds_files):
    pre, data = sds_files([1, 2, 3], [1, 2])
    with pytest.raises(SampleCountMismatchError, match="cap_C1_0000001_waveform=3, cap_C2_0000001_waveform=2"):
        convert_sds(pre, data, str(tmp_path / "out.csv"))


def test_join_refuses_existing_output(tmp_path):
    path = tmp_path / "xfer0.bin"
    path.write_bytes(b"#9000000002" + b"ab" + b"\n\n")
    dat = tmp_path / "joined.dat"
    dat.write_bytes(b"keep")
    with pytest.raises(FileExistsError):
        join_transfers([path], dat, total_points=2, chunk_points=2)
    assert dat.read_bytes() == b"keep"

    join_transfers([path], dat, total_points=2, chunk_points=2, overwrite=True)
    assert dat.read_bytes() == b"X" * 11 + b"ab" + b"\n\n"
