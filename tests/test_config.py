"""
Smoke tests for configuration loading, validation and CLI overrides.
"""

import pytest

from main import apply_cli_overrides, build_parser, create_detectors, load_config, validate_config


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["camera", "face_detection", "landmarks", "log_path", "log_level"])
    def test_missing_section(self, valid_config, section):
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error.lower()

    def test_face_model_required(self, valid_config):
        """The face detection model has no default."""
        valid_config["face_detection"]["model"] = ""

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "face_detection.model" in error

    def test_landmarks_model_optional(self, valid_config):
        """An empty landmarks model disables landmarks and is valid."""
        valid_config["landmarks"]["model"] = ""

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_device_id_type(self, valid_config):
        valid_config["camera"]["device_id"] = [1, 2, 3]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    def test_negative_device_id(self, valid_config):
        valid_config["camera"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error.lower()

    @pytest.mark.parametrize("device_id", ["cam", "video.mp4", "rtsp://192.168.1.1/stream"])
    def test_string_device_id_valid(self, valid_config, device_id):
        valid_config["camera"]["device_id"] = device_id

        is_valid, _ = validate_config(valid_config)

        assert is_valid is True

    def test_invalid_resolution_length(self, valid_config):
        valid_config["camera"]["resolution"] = [1920]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "resolution" in error.lower()

    def test_invalid_fps(self, valid_config):
        valid_config["camera"]["fps"] = 0

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "fps" in error.lower()

    def test_invalid_camera_backend(self, valid_config):
        valid_config["camera"]["backend"] = "picamera2"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "backend" in error.lower()

    @pytest.mark.parametrize("threshold", [-0.1, 1.5, "high"])
    def test_invalid_threshold(self, valid_config, threshold):
        valid_config["face_detection"]["threshold"] = threshold

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "threshold" in error

    @pytest.mark.parametrize("max_batch", [0, -4, 2.5])
    def test_invalid_landmarks_batch(self, valid_config, max_batch):
        valid_config["landmarks"]["max_batch"] = max_batch

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "max_batch" in error

    def test_invalid_web_port(self, valid_config):
        valid_config["web"]["port"] = 70000

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "web.port" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error.lower()


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["camera"]["device_id"] == "cam"
        assert config["face_detection"]["threshold"] == 0.5
        assert config["landmarks"]["max_batch"] == 16

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
face_detection:
  threshold: 0.7
  device: "GPU"
""")

        config = load_config(str(config_yaml))

        assert config["face_detection"]["threshold"] == 0.7
        assert config["face_detection"]["device"] == "GPU"
        assert config["face_detection"]["model"] == "models/face-detection-adas-0001.xml"

    def test_explicit_config_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("landmarks:\n  max_batch: 8\n")
        explicit = temp_config_dir / "bench.yaml"
        explicit.write_text("landmarks:\n  max_batch: 4\n  dynamic_batch: true\n")

        config = load_config(str(explicit))

        assert config["landmarks"]["max_batch"] == 4
        assert config["landmarks"]["dynamic_batch"] is True
        assert config["landmarks"]["device"] == "CPU"

    def test_invalid_yaml_exits(self, temp_config_dir):
        bad = temp_config_dir / "config.yaml"
        bad.write_text("camera: [unclosed\n")

        with pytest.raises(SystemExit):
            load_config(str(bad))


class TestCliOverrides:
    def test_no_flags_keep_config(self, valid_config):
        args = build_parser().parse_args([])
        before = {k: (dict(v) if isinstance(v, dict) else v) for k, v in valid_config.items()}

        apply_cli_overrides(valid_config, args)

        assert valid_config == before

    def test_flags_override_config(self, valid_config):
        args = build_parser().parse_args([
            "-i", "cam",
            "-m", "face.xml",
            "-m_lm", "lm.xml",
            "-d", "GPU",
            "-d_lm", "NPU",
            "-n_lm", "4",
            "-dyn_lm",
            "--async",
            "-t", "0.7",
            "-r",
            "-pc",
            "-l", "libext.so",
            "--no-show",
            "--no-wait",
            "--record",
            "--web",
        ])

        config = apply_cli_overrides(valid_config, args)

        assert config["camera"]["device_id"] == "cam"
        assert config["face_detection"] == {
            "model": "face.xml",
            "device": "GPU",
            "threshold": 0.7,
            "async": True,
            "raw_output": True,
        }
        assert config["landmarks"]["model"] == "lm.xml"
        assert config["landmarks"]["device"] == "NPU"
        assert config["landmarks"]["max_batch"] == 4
        assert config["landmarks"]["dynamic_batch"] is True
        assert config["landmarks"]["async"] is True
        assert config["inference"] == {"cpu_extension": "libext.so", "perf_counts": True}
        assert config["display"]["show"] is False
        assert config["display"]["wait_for_key"] is False
        assert config["display"]["record"] is True
        assert config["web"]["enabled"] is True


class TestCreateDetectors:
    def test_detectors_from_config(self, valid_config):
        valid_config["face_detection"]["threshold"] = 0.6
        valid_config["landmarks"]["dynamic_batch"] = True

        face, landmarks = create_detectors(valid_config)

        assert face.topo_name == "Face Detection"
        assert face.max_batch == 1
        assert face.detection_threshold == 0.6
        assert landmarks.max_batch == 16
        assert landmarks.is_batch_dynamic is True
        assert landmarks.enabled is True

    def test_empty_landmarks_model_disables(self, valid_config):
        valid_config["landmarks"]["model"] = None

        _, landmarks = create_detectors(valid_config)

        assert landmarks.enabled is False
