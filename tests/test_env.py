import os

import pytest

from distrikit import env


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("DISTRIROOT", "DISTRICFG", "DEFAULTREPOROOT", "DEFAULTREPO"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_build_and_pkg_dir(tmp_path):
    root = env.DistriRoot(str(tmp_path))
    assert root.build_dir("gcc") == os.path.join(str(tmp_path), "_build", "gcc")
    assert root.pkg_dir("gcc") == os.path.join(str(tmp_path), "pkgs", "gcc")


def test_empty_pkg_has_no_trailing_separator(tmp_path):
    root = env.DistriRoot(str(tmp_path))
    assert root.pkg_dir("") == os.path.join(str(tmp_path), "pkgs")
    assert os.fspath(root) == str(tmp_path)


def test_distri_root_from_environment(clean_env, tmp_path):
    clean_env.setenv("DISTRIROOT", str(tmp_path))
    assert env.distri_root() == env.DistriRoot(str(tmp_path))


def test_distri_root_default_uses_home(clean_env, tmp_path):
    clean_env.setenv("HOME", str(tmp_path))
    assert env.distri_root().path == str(tmp_path) + "/distri"


def test_distri_config(clean_env, tmp_path):
    assert env.distri_config() == "/etc/distri"
    clean_env.setenv("DISTRICFG", str(tmp_path))
    assert env.distri_config() == str(tmp_path)


def test_default_repo_derivation(clean_env, tmp_path):
    clean_env.setenv("DISTRIROOT", str(tmp_path))
    assert env.default_repo_root() == env.distri_root().build_dir("distri")
    assert env.default_repo() == os.path.join(env.default_repo_root(), "pkg")


def test_default_repo_overrides(clean_env):
    clean_env.setenv("DEFAULTREPOROOT", "https://repo.example.com/")
    assert env.default_repo() == "https://repo.example.com/pkg"
    clean_env.setenv("DEFAULTREPO", "https://other.example.com/pkg")
    assert env.default_repo() == "https://other.example.com/pkg"


def test_join_url_and_path():
    assert env.join() == ""
    assert env.join("http://repo.example.com/", "pkg") == "http://repo.example.com/pkg"
    assert env.join("https://repo.example.com", "a", "b") == "https://repo.example.com/a/b"
    assert env.join("a", "b") == os.path.join("a", "b")


def test_repos_without_config_dir(clean_env, tmp_path):
    clean_env.setenv("DISTRICFG", str(tmp_path / "missing"))
    clean_env.setenv("DISTRIROOT", str(tmp_path))
    assert env.repos() == [env.Repo(path=env.default_repo_root(), pkg_path=env.default_repo())]


def test_repos_from_config(clean_env, tmp_path):
    repos_d = tmp_path / "repos.d"
    repos_d.mkdir()
    (repos_d / "a.repo").write_text("https://repo.example.com key=value\n/srv/repo\n")
    (repos_d / "ignored.txt").write_text("https://ignored.example.com\n")
    clean_env.setenv("DISTRICFG", str(tmp_path))
    assert env.repos() == [
        env.Repo(path="https://repo.example.com", pkg_path="https://repo.example.com/pkg"),
        env.Repo(path="/srv/repo", pkg_path="/srv/repo/pkg"),
    ]