import json

from site_scraper import cli
from site_scraper.config import SourceRule
from site_scraper.errors import ConfigError
from site_scraper.output import ResultNode


def _args(argv):
    return cli.build_parser().parse_args(argv)


def test_build_config_from_flags(tmp_path):
    config = cli.build_config(
        _args(
            [
                "http://example.com",
                "-d",
                str(tmp_path / "out"),
                "--recursive",
                "--max-depth",
                "2",
                "--source",
                "img:data-src",
                "--header",
                "User-Agent: tester",
                "--allow-host-suffix",
                "example.com",
                "--flat",
            ]
        )
    )

    assert config.urls == ["http://example.com"]
    assert config.directory == tmp_path / "out"
    assert config.recursive is True
    assert config.max_depth == 2
    assert config.sources == (SourceRule("img", "data-src"),)
    assert config.request == {"headers": {"User-Agent": "tester"}}
    assert config.subdirectories is None
    assert config.url_filter("http://www.example.com/a")
    assert not config.url_filter("http://other.com/a")


def test_flags_override_config_file(tmp_path):
    path = tmp_path / "scrape.json"
    path.write_text(
        json.dumps(
            {
                "urls": ["http://from-file.com"],
                "directory": str(tmp_path / "file-out"),
                "defaultFilename": "main.html",
            }
        ),
        encoding="utf-8",
    )

    config = cli.build_config(_args(["--config", str(path), "-d", str(tmp_path / "cli")]))

    assert config.urls == ["http://from-file.com"]
    assert config.directory == tmp_path / "cli"
    assert config.default_filename == "main.html"


def test_main_prints_results(tmp_path, monkeypatch, capsys):
    seen = {}

    def fake_run(config, *, http=None):
        seen["config"] = config
        return [ResultNode("http://example.com", "index.html"), None]

    monkeypatch.setattr(cli, "run", fake_run)

    code = cli.main(["http://example.com", "-d", str(tmp_path / "out"), "-q"])

    assert code == 0
    assert seen["config"].urls == ["http://example.com"]
    payload = json.loads(capsys.readouterr().out)
    assert payload == [
        {"url": "http://example.com", "filename": "index.html", "assets": []},
        None,
    ]


def test_main_reports_scraper_errors(tmp_path, monkeypatch, capsys):
    def fake_run(config, *, http=None):
        raise ConfigError("Directory out already exists")

    monkeypatch.setattr(cli, "run", fake_run)

    code = cli.main(["http://example.com", "-d", str(tmp_path / "out"), "-q"])

    assert code == 2
    assert "already exists" in capsys.readouterr().err


def test_main_reports_unreadable_config(tmp_path, capsys):
    code = cli.main(["--config", str(tmp_path / "missing.json"), "-q"])

    assert code == 2
    assert "Cannot read config file" in capsys.readouterr().err


def test_main_reports_malformed_config_file(tmp_path, capsys):
    path = tmp_path / "scrape.json"
    path.write_text(
        json.dumps({"urls": ["http://x.com"], "subdirectories": [{"directory": "img"}]}),
        encoding="utf-8",
    )

    code = cli.main(["--config", str(path), "-d", str(tmp_path / "out"), "-q"])

    assert code == 2
    assert "Invalid subdirectory entry" in capsys.readouterr().err
