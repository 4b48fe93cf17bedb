"""A bundle remote on local disk, served to the transport client through dulwich's local client."""

from pathlib import Path
from typing import Dict, Union

from dulwich.objects import Blob, Commit, Tree
from dulwich.repo import Repo


class BundleRemote:
    """A bare repository on disk serving resource branches, built from dulwich objects."""

    def __init__(self, path: Path):
        self.path = path
        self.path.mkdir(parents=True)
        self.repo = Repo.init_bare(str(path))
        self._clock = 1_700_000_000

    @property
    def url(self) -> str:
        return str(self.path)

    def _write_tree(self, files: Dict[str, Union[str, bytes]]) -> bytes:
        store = self.repo.object_store
        tree = Tree()
        subdirs: Dict[str, dict] = {}
        for path, content in files.items():
            head, _, rest = path.partition("/")
            if rest:
                subdirs.setdefault(head, {})[rest] = content
                continue
            if isinstance(content, str):
                content = content.encode("utf-8")
            blob = Blob.from_string(content)
            store.add_object(blob)
            tree.add(head.encode("utf-8"), 0o100644, blob.id)
        for name, subfiles in subdirs.items():
            tree.add(name.encode("utf-8"), 0o040000, self._write_tree(subfiles))
        store.add_object(tree)
        return tree.id

    def commit(
        self, branch: str, files: Dict[str, Union[str, bytes]], message: str = "update"
    ) -> str:
        """Commit ``files`` as the complete content of ``branch`` and return the SHA."""
        ref = f"refs/heads/{branch}".encode("ascii")
        commit = Commit()
        commit.tree = self._write_tree(files)
        commit.parents = [self.repo.refs[ref]] if ref in self.repo.refs else []
        commit.author = commit.committer = b"Bundle Bot <bot@example.com>"
        self._clock += 60
        commit.author_time = commit.commit_time = self._clock
        commit.author_timezone = commit.commit_timezone = 0
        commit.encoding = b"UTF-8"
        commit.message = message.encode("utf-8")
        self.repo.object_store.add_object(commit)
        self.repo.refs[ref] = commit.id
        return commit.id.decode("ascii")

    def tip(self, branch: str) -> str:
        return self.repo.refs[f"refs/heads/{branch}".encode("ascii")].decode("ascii")

    def close(self):
        self.repo.close()


CARDS_V1 = {
    "cards/1.json": '{"id": 1, "rarity": 4}',
    "cards/2.json": '{"id": 2, "rarity": 3}',
    "README": "card bundle",
}

CARDS_V2 = {
    "cards/1.json": '{"id": 1, "rarity": 5}',
    "cards/2.json": '{"id": 2, "rarity": 3}',
    "cards/3.json": '{"id": 3, "rarity": 2}',
    "README": "card bundle",
}
