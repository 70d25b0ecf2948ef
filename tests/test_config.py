"""
Configuration Tests
"""

from aerotrace.config import AeroTraceConfig, DetectionConfig, TraceConfig


class TestDefaults:

    def test_detection_thresholds(self):
        config = DetectionConfig()

        assert config.max_cycles_per_day == 20.0
        assert config.max_hours_per_day == 18.0
        assert config.supply_chain_gap_days == 450
        assert config.custody_gap_days == 30
        assert "install" in config.in_service_events
        assert "remove" in config.off_aircraft_events

    def test_trace_windows(self):
        config = TraceConfig()

        assert config.coverage_days["repair"] == 14
        assert config.coverage_days["manufacture"] == 7
        assert "install" not in config.coverage_days

    def test_unified_config_fills_sections(self):
        config = AeroTraceConfig()

        assert config.storage.backend_type == "memory"
        assert config.fleet.max_workers == 4
        assert config.logging.json_output is True


class TestFromEnv:

    def test_empty_environment(self):
        config = AeroTraceConfig.from_env({})

        assert config.storage.backend_type == "memory"
        assert config.storage.storage_dir is None
        assert config.logging.level == "INFO"

    def test_storage_dir_implies_file_backend(self):
        config = AeroTraceConfig.from_env({"AEROTRACE_STORAGE_DIR": "/var/lib/aerotrace"})

        assert config.storage.backend_type == "file"
        assert config.storage.storage_dir == "/var/lib/aerotrace"

    def test_overrides(self):
        config = AeroTraceConfig.from_env({
            "AEROTRACE_MAX_WORKERS": "8",
            "AEROTRACE_LOG_LEVEL": "DEBUG",
            "AEROTRACE_LOG_JSON": "false",
        })

        assert config.fleet.max_workers == 8
        assert config.logging.level == "DEBUG"
        assert config.logging.json_output is False
