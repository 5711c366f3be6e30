import pytest

from readloc.doctor import PYSAM_MIN_VERSION, check_pysam, collect_checks


@pytest.mark.parametrize("version", ["0.20.0", "0.15.4", "0.9"])
def test_check_pysam_flags_old_versions(version):
    r = check_pysam(version)
    assert r.ok is False
    assert version in r.detail
    assert r.howto and "pysam>=" in r.howto


@pytest.mark.parametrize("version", ["0.21.0", "0.22.1", "1.0", "0.23.0rc1"])
def test_check_pysam_accepts_supported_versions(version):
    r = check_pysam(version)
    assert r.ok is True
    assert r.howto is None


def test_installed_pysam_meets_minimum():
    assert PYSAM_MIN_VERSION == (0, 21)
    assert collect_checks()["pysam"].ok is True
