import struct

import pytest

# Absolute Offsets im 358-Byte-Preamble (11 Byte Blockkopf + WAVEDESC + LF)
SDS_FIELDS = {
    "comm_type": (43, "<H"),
    "comm_order": (45, "<H"),
    "wave_desc_length": (47, "<I"),
    "wave_array_count": (127, "<I"),
    "vert_gain": (167, "<f"),
    "vert_offset": (171, "<f"),
    "code_per_div": (175, "<f"),
    "adc_bit": (183, "<H"),
    "horiz_interval": (187, "<f"),
    "horiz_offset": (191, "<d"),
    "time_base": (335, "<H"),
    "vert_coupling": (337, "<H"),
    "probe_attenuation": (339, "<f"),
    "bandwidth_limit": (345, "<H"),
    "wave_source": (355, "<H"),
}

SDS_DEFAULTS = {
    "comm_type": 0,
    "comm_order": 0,
    "wave_desc_length": 346,
    "wave_array_count": 0,
    "vert_gain": 0.01,
    "vert_offset": 0.0,
    "code_per_div": 25.0,
    "adc_bit": 8,
    "horiz_interval": 0.5,
    "horiz_offset": 0.0,
    "time_base": 29,  # 1 s/div
    "vert_coupling": 0,
    "probe_attenuation": 1.0,
    "bandwidth_limit": 0,
    "wave_source": 0,
}


def build_sds_preamble(**fields) -> bytes:
    buf = bytearray(358)
    buf[0:11] = b"#9000000346"
    buf[11:19] = b"WAVEDESC"
    buf[27:34] = b"WAVEACE"
    buf[87:97] = b"SDS2104X+\x00"
    buf[51:55] = b"\xde\xad\xbe\xef"
    buf[357] = 0x0A
    for name, value in {**SDS_DEFAULTS, **fields}.items():
        offset, fmt = SDS_FIELDS[name]
        struct.pack_into(fmt, buf, offset, value)
    return bytes(buf)


def build_sds_data(codes, width=1, order="<", header=b"#9000000000", trailer=b"\n\n") -> bytes:
    code = "B" if width == 1 else "H"
    return header + struct.pack(f"{order}{len(codes)}{code}", *codes) + trailer


TDS_FIELDS = {
    "BYT_Nr": ":WFMPRE:BYT_NR 1",
    "BIT_Nr": "BIT_NR 8",
    "ENCdg": "ENCDG BIN",
    "BN_Fmt": "BN_FMT RP",
    "BYT_Or": "BYT_OR MSB",
    "NR_Pt": "NR_PT 2",
    "WFID": 'WFID "Ch1, DC coupling, 2.0E0 V/div, 5.0E-4 s/div, 2500 points, Sample mode"',
    "PT_FMT": "PT_FMT Y",
    "XINcr": "XINCR 1.0E0",
    "PT_Off": "PT_OFF 0",
    "XZERo": "XZERO 0.0E0",
    "XUNit": 'XUNIT "s"',
    "YMUlt": "YMULT 4.0E-2",
    "YZEro": "YZERO 0.0E0",
    "YOFf": "YOFF 0.0E0",
    "YUNit": 'YUNIT "Volts"',
}


def build_tds_preamble(**fields) -> bytes:
    values = {**TDS_FIELDS, **fields}
    return (";".join(values.values()) + "\n").encode("ascii")


@pytest.fixture
def sds_preamble():
    return build_sds_preamble


@pytest.fixture
def sds_data():
    return build_sds_data


@pytest.fixture
def tds_preamble():
    return build_tds_preamble
