from distrikit import kconfig_diff


def test_parse_config_keeps_y_and_m():
    text = "# comment\nCONFIG_A=y\nCONFIG_B=m\n# CONFIG_C is not set\nCONFIG_D=\"x\"\n"
    assert kconfig_diff.parse_config(text) == {"CONFIG_A": "y", "CONFIG_B": "m"}


def test_all_options_sorted_union():
    got = kconfig_diff.all_options({"B": "y", "A": "m"}, {"C": "y", "A": "y"})
    assert got == ["A", "B", "C"]


def test_diff_configs():
    distri = {"A": "y", "B": "y", "C": "m", "E": "y"}
    other = {"B": "m", "C": "y", "D": "m", "E": "y"}
    assert kconfig_diff.diff_configs(distri, other) == [
        "only in distri: A=y",
        "diff: C=m (distri) vs. y (other)",
        "only in other: D=m",
    ]


def test_identical_configs_have_no_diff():
    cfg = {"A": "y", "B": "m"}
    assert kconfig_diff.diff_configs(cfg, dict(cfg)) == []


def test_main_prints_diff(tmp_path, capsys):
    distri = tmp_path / "distri.config"
    other = tmp_path / "other.config"
    distri.write_text("CONFIG_X=y\n")
    other.write_text("CONFIG_Y=m\n")
    rc = kconfig_diff.main(["-config_distri", str(distri), "-config_other", str(other)])
    assert rc == 0
    assert capsys.readouterr().out == "only in distri: CONFIG_X=y\nonly in other: CONFIG_Y=m\n"


def test_main_missing_file(tmp_path):
    rc = kconfig_diff.main(["-config_distri", str(tmp_path / "nope"),
                            "-config_other", str(tmp_path / "nope2")])
    assert rc == 1