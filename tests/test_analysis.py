"""Tests for the analysis tools, with webpack and webpack-bundle-analyzer faked."""

import json
import subprocess
from pathlib import Path

import pytest

from webpack_analyzer.config import AnalyzerConfig
from webpack_analyzer.processes import ProcessRegistry
from webpack_analyzer.tools.analysis import (
    analyze_webpack_config,
    analyze_webpack_stats,
    generate_webpack_stats,
    get_bundle_metrics,
    list_analyzer_servers,
    stop_analyzer_server,
)

from test_processes import FakeProcess

STATS = {
    "assets": [{"name": "main.js", "size": 1000}, {"name": "main.css", "size": 200}],
    "entrypoints": {"main": {"assets": [{"size": 1000}], "chunks": ["0"]}},
    "chunks": [{"id": "0", "size": 1000, "modules": []}],
    "modules": [{"name": "./src/index.js", "size": 1000}],
    "time": 543,
}


class FakeNode:
    """Replaces subprocess.run for npx webpack / webpack-bundle-analyzer calls."""

    def __init__(self, build_exit: int = 0, write_report: bool = True, missing: bool = False):
        self.build_exit = build_exit
        self.write_report = write_report
        self.missing = missing
        self.calls = []

    def __call__(self, cmd, cwd=None, **kwargs):
        self.calls.append((cmd, cwd))
        if self.missing:
            raise FileNotFoundError(cmd[0])

        if "webpack-bundle-analyzer" in cmd:
            report = Path(cmd[cmd.index("--report") + 1])
            report.write_text("<html></html>")
            return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

        if "--json" in cmd:
            return subprocess.CompletedProcess(cmd, 0, stdout=json.dumps(STATS), stderr="")

        wrapper = Path(cmd[cmd.index("--config") + 1])
        assert wrapper.is_file()
        if self.build_exit != 0:
            return subprocess.CompletedProcess(cmd, self.build_exit, stdout="", stderr="Module not found: ./missing")
        run_dir = wrapper.parent
        (run_dir / "stats.json").write_text(json.dumps(STATS))
        if self.write_report and "'static'" in wrapper.read_text():
            (run_dir / "report.html").write_text("<html></html>")
        return subprocess.CompletedProcess(cmd, 0, stdout="compiled successfully", stderr="")


@pytest.fixture
def project(tmp_path):
    (tmp_path / "dist").mkdir()
    (tmp_path / "dist" / "stats.json").write_text(json.dumps(STATS))
    (tmp_path / "webpack.config.js").write_text("module.exports = { entry: './src/index.js' };")
    return tmp_path


@pytest.fixture
def cfg(project):
    config = AnalyzerConfig()
    config.project_dir = project
    config.extra_roots = []
    config.npx = "npx"
    config.analyzer_host = "127.0.0.1"
    config.analyzer_port = 8888
    return config


@pytest.fixture
def fake_node(monkeypatch):
    node = FakeNode()
    monkeypatch.setattr(subprocess, "run", node)
    return node


@pytest.fixture
def registry(monkeypatch):
    monkeypatch.setattr(subprocess, "Popen", lambda cmd, **kwargs: FakeProcess())
    registry = ProcessRegistry()
    yield registry
    registry.stop_all()


def test_stats_static_report(project, cfg, fake_node):
    result = analyze_webpack_stats("dist/stats.json", cfg=cfg)
    assert result["success"]
    report = project / "dist" / "report.html"
    assert result["reportPath"] == str(report.resolve())
    assert report.is_file()
    assert result["serverUrl"] is None
    assert "Report generated at" in result["message"]
    assert result["metrics"]["totalSize"] == 1200
    assert result["metrics"]["largestModules"][0]["type"] == "javascript"

    cmd, _ = fake_node.calls[0]
    assert cmd[:3] == ["npx", "webpack-bundle-analyzer", str((project / "dist" / "stats.json").resolve())]
    assert "--no-open" not in cmd


def test_stats_report_in_output_dir(project, cfg, fake_node):
    result = analyze_webpack_stats("dist/stats.json", output_dir="reports", open_browser=False, cfg=cfg)
    assert result["success"]
    assert result["reportPath"] == str((project / "reports" / "report.html").resolve())
    assert "--no-open" in fake_node.calls[0][0]


def test_stats_missing_file(cfg, fake_node):
    result = analyze_webpack_stats("nope/stats.json", cfg=cfg)
    assert not result["success"]
    assert result["error"] == "PathResolutionError"
    assert "File not found" in result["message"]
    assert fake_node.calls == []


def test_stats_invalid_json(project, cfg, fake_node):
    (project / "broken.json").write_text("{\"assets\": [")
    result = analyze_webpack_stats("broken.json", cfg=cfg)
    assert not result["success"]
    assert result["error"] == "StatsFileError"


def test_stats_unwalkable_document_still_reports(project, cfg, fake_node):
    (project / "odd.json").write_text(json.dumps({"modules": 42}))
    result = analyze_webpack_stats("odd.json", cfg=cfg)
    assert result["success"]
    assert result["metrics"] == {"error": "Failed to extract metrics"}


def test_stats_invalid_port(cfg, fake_node):
    result = analyze_webpack_stats("dist/stats.json", port=70000, generate_report=False, cfg=cfg)
    assert not result["success"]
    assert "Invalid port" in result["message"]


def test_stats_analyzer_not_installed(cfg, monkeypatch):
    monkeypatch.setattr(subprocess, "run", FakeNode(missing=True))
    result = analyze_webpack_stats("dist/stats.json", cfg=cfg)
    assert not result["success"]
    assert result["error"] == "ReportError"
    assert "not found" in result["message"]


def test_stats_server_mode(cfg, fake_node, registry):
    result = analyze_webpack_stats("dist/stats.json", port=9001, generate_report=False, cfg=cfg, registry=registry)
    assert result["success"]
    assert result["serverUrl"] == "http://127.0.0.1:9001"
    assert result["reportPath"] is None
    assert "Analyzer server running at http://127.0.0.1:9001" in result["message"]

    servers = list_analyzer_servers(registry)["servers"]
    assert len(servers) == 1
    assert servers[0]["running"]
    assert servers[0]["url"] == "http://127.0.0.1:9001"

    assert stop_analyzer_server(servers[0]["id"], registry) == {"stopped": True}
    assert list_analyzer_servers(registry)["servers"] == []
    assert stop_analyzer_server(servers[0]["id"], registry) == {"stopped": False}


def test_stop_all_clears_server_listing(cfg, fake_node, registry):
    analyze_webpack_stats("dist/stats.json", port=9001, generate_report=False, cfg=cfg, registry=registry)
    analyze_webpack_stats("dist/stats.json", port=9002, generate_report=False, cfg=cfg, registry=registry)
    assert len(list_analyzer_servers(registry)["servers"]) == 2

    registry.stop_all()
    assert list_analyzer_servers(registry)["servers"] == []


def test_stats_server_exits_immediately(cfg, fake_node, monkeypatch):
    monkeypatch.setattr(subprocess, "Popen", lambda cmd, **kwargs: FakeProcess(exit_code=1))
    registry = ProcessRegistry()
    result = analyze_webpack_stats("dist/stats.json", generate_report=False, cfg=cfg, registry=registry)
    assert not result["success"]
    assert "exited with code 1" in result["message"]
    assert registry.handles() == []


def test_config_static_report(project, cfg, fake_node):
    result = analyze_webpack_config("webpack.config.js", cfg=cfg)
    assert result["success"], result["message"]

    run_dir = Path(result["statsPath"]).parent
    assert run_dir.parent == project.resolve()
    assert run_dir.name.startswith("webpack-analyzer-")
    assert result["reportPath"] == str(run_dir / "report.html")
    assert result["metrics"]["buildTime"] == 543
    assert result["stdout"] == "compiled successfully"
    assert not list(run_dir.glob("webpack.analyzer.config.*"))

    cmd, cwd = fake_node.calls[0]
    assert cmd[:3] == ["npx", "webpack", "--config"]
    assert cwd == str(project.resolve())


def test_config_renders_report_when_plugin_skips_it(project, cfg, monkeypatch):
    node = FakeNode(write_report=False)
    monkeypatch.setattr(subprocess, "run", node)
    result = analyze_webpack_config("webpack.config.js", cfg=cfg)
    assert result["success"]
    assert Path(result["reportPath"]).is_file()
    assert "webpack-bundle-analyzer" in node.calls[1][0]


def test_config_runs_do_not_share_files(cfg, fake_node):
    first = analyze_webpack_config("webpack.config.js", cfg=cfg)
    second = analyze_webpack_config("webpack.config.js", cfg=cfg)
    assert first["statsPath"] != second["statsPath"]


def test_config_build_failure(project, cfg, monkeypatch):
    monkeypatch.setattr(subprocess, "run", FakeNode(build_exit=2))
    result = analyze_webpack_config("webpack.config.js", cfg=cfg)
    assert not result["success"]
    assert result["error"] == "BuildError"
    assert "Module not found" in result["message"]
    assert not list(project.glob("webpack-analyzer-*"))


def test_config_server_mode(cfg, fake_node, registry):
    result = analyze_webpack_config("webpack.config.js", generate_report=False, cfg=cfg, registry=registry)
    assert result["success"]
    assert result["serverUrl"] == "http://127.0.0.1:8888"
    assert result["reportPath"] is None
    assert not (Path(result["statsPath"]).parent / "report.html").exists()


def test_generate_stats(project, cfg, fake_node):
    result = generate_webpack_stats("webpack.config.js", "out/stats.json", cfg=cfg)
    assert result["success"]
    stats_path = project.resolve() / "out" / "stats.json"
    assert result["statsPath"] == str(stats_path)
    assert json.loads(stats_path.read_text()) == STATS
    assert result["metrics"]["chunkCount"] == 1


def test_get_bundle_metrics(project, cfg):
    result = get_bundle_metrics("dist/stats.json", cfg=cfg)
    assert result["success"]
    assert result["metrics"]["totalSizeByType"] == {"js": 1000, "css": 200}

    (project / "odd.json").write_text(json.dumps({"chunks": 3}))
    failed = get_bundle_metrics("odd.json", cfg=cfg)
    assert not failed["success"]
    assert failed["metrics"] == {"error": "Failed to extract metrics"}


def test_config_missing_stats_removes_run_dir(project, cfg, monkeypatch):
    """A build that exits 0 but writes no stats file leaves no run directory."""

    def silent_build(cmd, cwd=None, **kwargs):
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    monkeypatch.setattr(subprocess, "run", silent_build)
    result = analyze_webpack_config("webpack.config.js", cfg=cfg)
    assert not result["success"]
    assert "no stats file" in result["message"]
    assert not list(project.glob("webpack-analyzer-*"))
