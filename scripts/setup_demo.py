import shutil
from pathlib import Path
from looseobj.objects.models import CommitObject, Timestamp, TreeObject, User
from looseobj.objects.store import ObjectStore
from looseobj.worktree.builder import write_tree

def main():
    repo_dir = Path("demo_repo")
    if repo_dir.exists():
        shutil.rmtree(repo_dir)

    repo_dir.mkdir()
    store = ObjectStore(repo_dir / ".git")
    store.init_repo()

    print(f"Creating demo repo in {repo_dir}...")

    (repo_dir / "hello.txt").write_text("Hello World\n")
    (repo_dir / "src").mkdir()
    (repo_dir / "src" / "main.py").write_text("print('hello')\n")
    (repo_dir / "build").mkdir()
    (repo_dir / "build" / "out.bin").write_bytes(b"\x00\x01")
    (repo_dir / ".gitignore").write_text("# exact paths only\nbuild\n")

    tree_oid = write_tree(store, repo_dir)
    print(f"Tree:   {tree_oid}")

    user = User("Demo User", "demo@example.com")
    commit = CommitObject(
        tree_oid=tree_oid,
        author=user,
        author_time=Timestamp.now(),
        message="Initial commit",
    )
    commit_oid = store.write(commit)
    print(f"Commit: {commit_oid}")

    def show(oid: str, indent: str = ""):
        tree = store.read(oid)
        assert isinstance(tree, TreeObject)
        for entry in tree.entries:
            print(f"{indent}{entry.mode.value.decode()} {entry.oid[:7]} {entry.name}")
            if entry.mode.object_type == "tree":
                show(entry.oid, indent + "    ")

    print("\n--- Tree ---")
    show(tree_oid)
    print(f"\n{len(list(store.iter_oids()))} objects stored")

if __name__ == "__main__":
    main()
