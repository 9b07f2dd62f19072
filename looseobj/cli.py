import argparse
import logging
import sys
from pathlib import Path

from looseobj.identity import get_user
from looseobj.objects.errors import InvalidObjectFormatError, ObjectStoreError
from looseobj.objects.models import BlobObject, CommitObject, Timestamp, TreeObject, is_valid_oid
from looseobj.objects.store import DEFAULT_GIT_DIR, ObjectStore
from looseobj.worktree.builder import write_tree as build_tree

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    store = ObjectStore(args.git_dir)
    try:
        args.func(store, args)
    except (ObjectStoreError, OSError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"fatal: {e}", file=sys.stderr)
        return 1
    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="looseobj", description="Content-addressed loose object store")
    parser.add_argument("--git-dir", type=Path, default=DEFAULT_GIT_DIR, help="Metadata directory (default: .git)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command")
    commands.required = True

    init_parser = commands.add_parser("init", help="Create an empty repository")
    init_parser.set_defaults(func=init)

    cat_file_parser = commands.add_parser("cat-file", help="Print a stored object")
    cat_file_parser.set_defaults(func=cat_file)
    mode = cat_file_parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("-p", dest="pretty", action="store_true", help="Print blob content")
    mode.add_argument("--raw", action="store_true", help="Write the decompressed framed bytes")
    cat_file_parser.add_argument("object")

    hash_object_parser = commands.add_parser("hash-object", help="Compute the hash of a file as a blob")
    hash_object_parser.set_defaults(func=hash_object)
    hash_object_parser.add_argument("-w", dest="write", action="store_true", help="Store the blob")
    hash_object_parser.add_argument("file", type=Path)

    ls_tree_parser = commands.add_parser("ls-tree", help="List the entries of a tree")
    ls_tree_parser.set_defaults(func=ls_tree)
    ls_tree_parser.add_argument("-l", "--long", action="store_true", help="Show mode, type and hash")
    ls_tree_parser.add_argument("tree")

    write_tree_parser = commands.add_parser("write-tree", help="Store the tree of a directory")
    write_tree_parser.set_defaults(func=write_tree)
    write_tree_parser.add_argument("directory", nargs="?", default=".")

    commit_tree_parser = commands.add_parser("commit-tree", help="Store a commit for a tree")
    commit_tree_parser.set_defaults(func=commit_tree)
    commit_tree_parser.add_argument("tree")
    commit_tree_parser.add_argument("-p", dest="parents", action="append", default=[], help="Parent commit")
    commit_tree_parser.add_argument("-m", "--message", required=True)

    return parser.parse_args(argv)


def init(store: ObjectStore, args):
    store.init_repo()
    print(f"Initialized empty repository in {store.git_dir}")


def cat_file(store: ObjectStore, args):
    if args.raw:
        sys.stdout.buffer.write(store.read_raw(args.object))
        sys.stdout.flush()
        return

    obj = store.read(args.object)
    if not isinstance(obj, BlobObject):
        raise ObjectStoreError(f"{args.object} is not a blob")
    sys.stdout.buffer.write(obj.data)
    sys.stdout.flush()


def hash_object(store: ObjectStore, args):
    with open(args.file, "rb") as f:
        blob = BlobObject(f.read())
    print(store.write(blob) if args.write else blob.compute_oid())


def ls_tree(store: ObjectStore, args):
    obj = store.read(args.tree)
    if not isinstance(obj, TreeObject):
        raise ObjectStoreError(f"{args.tree} is not a tree")
    for entry in obj.entries:
        if args.long:
            print(f"{entry.mode.value.decode()} {entry.mode.object_type} {entry.oid}\t{entry.name}")
        else:
            print(entry.name)


def write_tree(store: ObjectStore, args):
    print(build_tree(store, args.directory))


def commit_tree(store: ObjectStore, args):
    for oid in [args.tree, *args.parents]:
        if not is_valid_oid(oid):
            raise InvalidObjectFormatError(f"Invalid Object ID: {oid}")
    user = get_user(git_dir=store.git_dir)
    now = Timestamp.now()
    commit = CommitObject(
        tree_oid=args.tree,
        parent_oids=args.parents,
        author=user,
        author_time=now,
        committer=user,
        committer_time=now,
        message=args.message,
    )
    print(store.write(commit))


if __name__ == "__main__":
    sys.exit(main())
