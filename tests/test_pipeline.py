"""
Integration tests for recommend.pipeline

Covers:
- resolve_data_path() precedence
- build_models()
- End-to-end run_pipeline() on a tiny CSV dataset
- main() exit statuses
"""

import logging

import pytest

from recommend import pipeline
from recommend.errors import ConfigurationError, DecompositionError
from recommend.model import MatrixCompletionModel, ModelKind, SpectralClusteringModel
from recommend.serialize import load_predictions


class TestResolveDataPath:

    def test_explicit_path_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATA_PATH", "/elsewhere")
        assert pipeline.resolve_data_path(str(tmp_path)) == tmp_path

    def test_data_path_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DATA_PATH", str(tmp_path))
        assert pipeline.resolve_data_path() == tmp_path

    def test_recommend_home_fallback(self, monkeypatch, tmp_path):
        monkeypatch.delenv("DATA_PATH", raising=False)
        monkeypatch.setenv("RECOMMEND_HOME", str(tmp_path))
        assert pipeline.resolve_data_path() == tmp_path / "data"

    def test_nothing_set(self, monkeypatch):
        monkeypatch.delenv("DATA_PATH", raising=False)
        monkeypatch.delenv("RECOMMEND_HOME", raising=False)
        with pytest.raises(ConfigurationError):
            pipeline.resolve_data_path()


class TestBuildModels:

    def test_default_builds_all_kinds(self):
        models = pipeline.build_models()
        assert [type(m) for m in models] == [MatrixCompletionModel, SpectralClusteringModel]

    def test_selected_kinds(self):
        models = pipeline.build_models([ModelKind.SPECTRAL_CLUSTERING])
        assert len(models) == 1
        assert isinstance(models[0], SpectralClusteringModel)


class TestRunPipeline:
    """End-to-end orchestration tests for run_pipeline()."""

    def test_full_pipeline_run(self, data_dir, tmp_output_dir):
        results = pipeline.run_pipeline(data_path=str(data_dir),
                                        output_dir=str(tmp_output_dir),
                                        make_plots=False)

        assert results['dataset']['num_customers'] == 4
        assert results['dataset']['num_tests'] == 3
        assert results['dataset']['num_anomalies'] == 1
        assert set(results['models']) == {"MatrixCompletion", "SpectralClustering"}

        for name in ("MatrixCompletion", "SpectralClustering"):
            predictions = load_predictions(tmp_output_dir / f"{name}.txt")
            # one prediction per test transaction, in order
            assert predictions == [0, 0, 0]

        spectral = results['models']['SpectralClustering']['model_info']
        assert spectral['state'] == 'trained'
        assert spectral['size'] == 3

    def test_plots_written(self, data_dir, tmp_output_dir):
        pipeline.run_pipeline(data_path=str(data_dir),
                              output_dir=str(tmp_output_dir),
                              models=[MatrixCompletionModel()],
                              make_plots=True)
        assert (tmp_output_dir / "trans_freq.png").exists()
        assert (tmp_output_dir / "tests_freq.png").exists()
        assert (tmp_output_dir / "initial_matrix.png").exists()
        assert not (tmp_output_dir / "SpectralClustering.txt").exists()

    def test_models_run_in_order(self, data_dir, tmp_output_dir, mocker):
        spy = mocker.spy(pipeline, "run_model")
        models = [SpectralClusteringModel(), MatrixCompletionModel()]
        pipeline.run_pipeline(data_path=str(data_dir), output_dir=str(tmp_output_dir),
                              models=models, make_plots=False)
        assert [call.args[0] for call in spy.call_args_list] == models

    def test_phase_banners(self, data_dir, tmp_output_dir, caplog):
        """Every one of the six phases is announced, per model for the last three."""
        caplog.set_level(logging.INFO, logger="recommend.pipeline")
        pipeline.run_pipeline(data_path=str(data_dir), output_dir=str(tmp_output_dir),
                              models=[MatrixCompletionModel()], make_plots=False)
        messages = [record.getMessage() for record in caplog.records]
        for phase in range(1, 7):
            assert any(message.startswith(f"[{phase}/6]") for message in messages)
        assert not any("/4]" in message for message in messages)


class TestMain:
    """Exit statuses of the command line entry point"""

    def test_success(self, data_dir, tmp_output_dir):
        status = pipeline.main(["--data-path", str(data_dir),
                                "--output-dir", str(tmp_output_dir),
                                "--model", "matrix_completion",
                                "--no-plots", "--log-level", "info"])
        assert status == 0
        assert (tmp_output_dir / "MatrixCompletion.txt").exists()
        assert not (tmp_output_dir / "SpectralClustering.txt").exists()

    def test_missing_data_exits_nonzero(self, tmp_path, tmp_output_dir):
        status = pipeline.main(["--data-path", str(tmp_path / "nowhere"),
                                "--output-dir", str(tmp_output_dir), "--no-plots"])
        assert status == 1

    def test_unresolvable_data_path(self, monkeypatch):
        monkeypatch.delenv("DATA_PATH", raising=False)
        monkeypatch.delenv("RECOMMEND_HOME", raising=False)
        assert pipeline.main(["--no-plots"]) == 1

    def test_decomposition_failure(self, data_dir, tmp_output_dir, mocker):
        mocker.patch("recommend.pipeline.run_model", side_effect=DecompositionError("no convergence"))
        status = pipeline.main(["--data-path", str(data_dir),
                                "--output-dir", str(tmp_output_dir), "--no-plots"])
        assert status == 2

    def test_invalid_log_level_rejected(self, capsys):
        with pytest.raises(SystemExit) as excinfo:
            pipeline.parse_args(["--log-level", "loud"])
        assert excinfo.value.code == 2
        assert "invalid choice" in capsys.readouterr().err

    def test_log_level_case_insensitive(self):
        assert pipeline.parse_args(["--log-level", "warning"]).log_level == "WARNING"
