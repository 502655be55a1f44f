import os

import pytest

from gadgetmoded.storage import (
    StorageConfigError,
    StorageInfo,
    find_mount_device,
    get_storage_info,
    get_storage_info as _gsi,  # noqa: F401
    parse_blocking_processes,
    parse_mount_list,
)


def _write(path, text):
    path.write_text(text)
    return path


def test_find_mount_device_matches_directory(tmp_path):
    fstab = _write(tmp_path / "fstab",
                   "# comment line\n\n/dev/sda1 / ext4 defaults 0 1\n"
                   "/dev/sdb1 /home ext4 defaults 0 2\n")
    assert find_mount_device("/home", fstab) == "/dev/sdb1"
    assert find_mount_device("/", fstab) == "/dev/sda1"


def test_find_mount_device_unknown_mountpoint(tmp_path):
    fstab = _write(tmp_path / "fstab", "/dev/sda1 / ext4 defaults 0 1\n")
    assert find_mount_device("/nowhere", fstab) is None


def test_find_mount_device_missing_fstab(tmp_path):
    assert find_mount_device("/", tmp_path / "absent") is None


def test_find_mount_device_decodes_octal_space(tmp_path):
    fstab = _write(tmp_path / "fstab", "/dev/sdc1 /media/my\\040disk vfat defaults 0 0\n")
    assert find_mount_device("/media/my disk", fstab) == "/dev/sdc1"


def test_find_mount_device_first_match_wins(tmp_path):
    fstab = _write(tmp_path / "fstab",
                   "/dev/one /data ext4 defaults 0 0\n/dev/two /data ext4 defaults 0 0\n")
    assert find_mount_device("/data", fstab) == "/dev/one"


def test_parse_mount_list_splits_on_commas():
    assert parse_mount_list("/home,/media/sd") == ["/home", "/media/sd"]


def test_parse_mount_list_single():
    assert parse_mount_list("/home") == ["/home"]


def test_parse_mount_list_none_raises():
    with pytest.raises(StorageConfigError):
        parse_mount_list(None)


def test_parse_mount_list_empty_raises():
    with pytest.raises(StorageConfigError):
        parse_mount_list("")


@pytest.fixture
def layout(tmp_path):
    mount_a = tmp_path / "mnt_a"
    mount_b = tmp_path / "mnt_b"
    mount_a.mkdir()
    mount_b.mkdir()
    dev_a = _write(tmp_path / "dev_a", "")
    dev_b = _write(tmp_path / "dev_b", "")
    fstab = _write(tmp_path / "fstab",
                   f"{dev_a} {mount_a} ext4 defaults 0 0\n"
                   f"{dev_b} {mount_b} ext4 defaults 0 0\n")
    return tmp_path, str(mount_a), str(mount_b), str(dev_a), str(dev_b), fstab


def test_get_storage_info_resolves_all(layout):
    _, mount_a, mount_b, dev_a, dev_b, fstab = layout
    infos = get_storage_info(f"{mount_a},{mount_b}", fstab)
    assert infos == [StorageInfo(mount_a, dev_a), StorageInfo(mount_b, dev_b)]


def test_get_storage_info_missing_mountpoint(layout):
    root, mount_a, _, _, _, fstab = layout
    missing = os.path.join(str(root), "gone")
    with pytest.raises(StorageConfigError, match="does not exist"):
        get_storage_info(f"{mount_a},{missing}", fstab)


def test_get_storage_info_mountpoint_not_in_fstab(layout):
    root, _, _, _, _, fstab = layout
    other = root / "other"
    other.mkdir()
    with pytest.raises(StorageConfigError, match="can't find device"):
        get_storage_info(str(other), fstab)


def test_get_storage_info_device_missing(layout):
    root, mount_a, _, dev_a, _, fstab = layout
    os.remove(dev_a)
    with pytest.raises(StorageConfigError, match="mount device"):
        get_storage_info(mount_a, fstab)


def test_get_storage_info_no_setting():
    with pytest.raises(StorageConfigError):
        get_storage_info(None)


def test_parse_blocking_processes_skips_header():
    lines = [
        "COMMAND   PID USER   FD   TYPE DEVICE SIZE/OFF NODE NAME\n",
        "bash     1234 nemo  cwd    DIR    8,1     4096    2 /home\n",
        "tracker  5678 nemo  3r     REG    8,1      100   12 /home/file\n",
    ]
    assert parse_blocking_processes(lines) == ["bash", "tracker"]


def test_parse_blocking_processes_only_header():
    assert parse_blocking_processes(["COMMAND PID USER\n"]) == []