import hashlib
import os
import pytest

from looseobj.objects.errors import InvalidObjectFormatError, ObjectIOError
from looseobj.objects.models import BlobObject, FileMode, TreeObject
from looseobj.objects.store import ObjectStore
from looseobj.worktree.builder import TreeBuilder, write_tree
from looseobj.worktree.ignore import PathExclusionSet


@pytest.fixture
def work_dir(tmp_path, monkeypatch):
    """An initialized repository in the current directory."""
    monkeypatch.chdir(tmp_path)
    ObjectStore(".git").init_repo()
    return tmp_path


@pytest.fixture
def store(work_dir):
    return ObjectStore(".git")


def test_single_file(work_dir, store):
    (work_dir / "a.txt").write_bytes(b"hi\n")

    tree_oid = write_tree(store)
    tree = store.read(tree_oid)

    assert isinstance(tree, TreeObject)
    assert len(tree.entries) == 1
    entry = tree.entries[0]
    assert entry.mode == FileMode.REGULAR
    assert entry.name == "a.txt"
    assert entry.oid == hashlib.sha1(b"blob 3\x00hi\n").hexdigest()
    assert store.read(entry.oid) == BlobObject(b"hi\n")


def test_rebuild_is_stable(work_dir, store):
    (work_dir / "a.txt").write_bytes(b"hi\n")
    assert write_tree(store) == write_tree(store)


def test_empty_directory(work_dir, store):
    assert write_tree(store) == "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


def test_nested_directories(work_dir, store):
    """
    Creates:
        parent_folder/
            ├── file1.txt ("hello")
            └── child_folder/
                └── file2.txt ("world")
    """
    parent_folder = work_dir / "parent_folder"
    child_folder = parent_folder / "child_folder"
    child_folder.mkdir(parents=True)
    (parent_folder / "file1.txt").write_text("hello")
    (child_folder / "file2.txt").write_text("world")

    root = store.read(write_tree(store))
    assert [e.name for e in root.entries] == ["parent_folder"]
    assert root.entries[0].mode == FileMode.DIRECTORY

    parent = store.read(root.entries[0].oid)
    assert [(e.name, e.mode) for e in parent.entries] == [
        ("child_folder", FileMode.DIRECTORY),
        ("file1.txt", FileMode.REGULAR),
    ]

    child = store.read(parent.entries[0].oid)
    assert [e.name for e in child.entries] == ["file2.txt"]
    assert store.read(child.entries[0].oid).data == b"world"


def test_entries_sorted_bytewise(work_dir, store):
    for name in ["b.txt", "B.txt", "a.txt", "_x"]:
        (work_dir / name).write_text(name)

    tree = store.read(write_tree(store))
    assert [e.name for e in tree.entries] == ["B.txt", "_x", "a.txt", "b.txt"]


def test_same_content_different_creation_order(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    for root, names in [(first, ["x", "y", "z"]), (second, ["z", "x", "y"])]:
        root.mkdir()
        for name in names:
            (root / name).write_text(f"content of {name}")

    store = ObjectStore(tmp_path / "meta")
    exclusions = PathExclusionSet()
    builder = TreeBuilder(store, exclusions)
    assert builder.build(first) == builder.build(second)


def test_executable_mode(work_dir, store):
    script = work_dir / "run.sh"
    script.write_text("#!/bin/sh\n")
    script.chmod(0o755)
    (work_dir / "plain.txt").write_text("plain")

    tree = store.read(write_tree(store))
    modes = {e.name: e.mode for e in tree.entries}
    assert modes == {"plain.txt": FileMode.REGULAR, "run.sh": FileMode.EXECUTABLE}


def test_git_dir_is_excluded(work_dir, store):
    (work_dir / "a.txt").write_text("a")
    tree = store.read(write_tree(store))
    assert [e.name for e in tree.entries] == ["a.txt"]


def test_exclusion_list(work_dir, store):
    (work_dir / ".gitignore").write_text("build\nsrc/generated.py\n")
    (work_dir / "build").mkdir()
    (work_dir / "build" / "out.o").write_text("binary")
    (work_dir / "build2").mkdir()
    (work_dir / "build2" / "keep.txt").write_text("keep")
    (work_dir / "src").mkdir()
    (work_dir / "src" / "generated.py").write_text("# generated")
    (work_dir / "src" / "main.py").write_text("print()")

    tree = store.read(write_tree(store))
    assert [e.name for e in tree.entries] == [".gitignore", "build2", "src"]

    src = store.read(tree.entries[2].oid)
    assert [e.name for e in src.entries] == ["main.py"]


def test_symlinks_are_skipped(work_dir, store):
    (work_dir / "target.txt").write_text("target")
    os.symlink(work_dir / "target.txt", work_dir / "link.txt")
    (work_dir / "dir").mkdir()
    os.symlink(work_dir / "dir", work_dir / "dirlink")

    tree = store.read(write_tree(store))
    assert [e.name for e in tree.entries] == ["dir", "target.txt"]


def test_subtrees_are_stored(work_dir, store):
    (work_dir / "sub").mkdir()
    (work_dir / "sub" / "f").write_text("f")

    tree = store.read(write_tree(store))
    assert store.exists(tree.entries[0].oid)
    assert len(list(store.iter_oids())) == 3


def test_missing_directory_fails(tmp_path):
    builder = TreeBuilder(ObjectStore(tmp_path / "meta"), PathExclusionSet())
    with pytest.raises(ObjectIOError):
        builder.build(tmp_path / "nope")


@pytest.mark.skipif(os.geteuid() == 0, reason="root ignores file permissions")
def test_unreadable_file_aborts_build(work_dir, store):
    secret = work_dir / "secret.txt"
    secret.write_text("secret")
    secret.chmod(0)
    try:
        with pytest.raises(ObjectIOError):
            write_tree(store)
    finally:
        secret.chmod(0o644)


def test_non_utf8_filename_aborts_build(tmp_path):
    root = tmp_path / "root"
    root.mkdir()
    try:
        with open(os.path.join(os.fsencode(root), b"bad\xffname"), "wb") as f:
            f.write(b"x")
    except OSError:
        pytest.skip("filesystem rejects non-UTF-8 names")

    builder = TreeBuilder(ObjectStore(tmp_path / "meta"), PathExclusionSet())
    with pytest.raises(InvalidObjectFormatError):
        builder.build(root)
