"""Tests for the command-line pipeline."""

import json

import pytest

from qld.run_analysis import main, load_dataset


@pytest.fixture
def assay_file(tmp_path):
    path = tmp_path / "assay.json"
    path.write_text(json.dumps({
        "positive_wells": [6, 3, 1],
        "total_wells": [6, 6, 6],
        "dilution_fraction": [1.0, 0.2, 0.04],
    }))
    return path


class TestRunAnalysis:
    """Tests for qld.run_analysis."""

    def test_load_dataset(self, assay_file):
        data = load_dataset(str(assay_file))
        assert len(data) == 3

    def test_writes_results(self, assay_file, tmp_path, capsys):
        out_dir = tmp_path / "results"
        code = main([
            "--data", str(assay_file), "--burnin", "20", "--samples", "30",
            "--chains", "2", "--seed", "1", "--iupm-scale", "2.0",
            "--output", str(out_dir),
        ])
        assert code == 0
        assert "POSTERIOR SUMMARY" in capsys.readouterr().out

        files = list(out_dir.glob("qld_results_*.json"))
        assert len(files) == 1
        results = json.loads(files[0].read_text())
        assert len(results["samples"]["theta"]) == 60
        assert results["samples"]["chain_id"][:30] == [1] * 30
        assert results["summary"]["posterior"]["scale"] == 2.0
        assert results["config"]["n_chains"] == 2

    def test_invalid_counts_exit_code(self, assay_file, tmp_path):
        out_dir = tmp_path / "results"
        code = main(["--data", str(assay_file), "--burnin", "0", "--output", str(out_dir)])
        assert code == 2
        assert not out_dir.exists()

    def test_invalid_data_exit_code(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({
            "positive_wells": [1, 2],
            "total_wells": [3, 3, 3],
            "dilution_fraction": [0.5, 0.5, 0.5],
        }))
        assert main(["--data", str(path)]) == 2

    def test_negative_seed_exit_code(self, assay_file, tmp_path):
        out_dir = tmp_path / "results"
        code = main(["--data", str(assay_file), "--seed", "-1", "--output", str(out_dir)])
        assert code == 2
        assert not out_dir.exists()

    def test_missing_data_file(self, tmp_path):
        assert main(["--data", str(tmp_path / "missing.json")]) == 1

    def test_malformed_data_file(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{\"positive_wells\": [1, 2")
        assert main(["--data", str(path)]) == 1
