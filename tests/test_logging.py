from log_config.logger import configure_file_logging, get_logger, logger


def test_file_sink_is_opt_in(tmp_path) -> None:
    logs_dir = tmp_path / "logs"
    assert not logs_dir.exists()

    handler_id = configure_file_logging(logs_dir, level="INFO")
    try:
        get_logger("tests.logging").info("calibration sample accepted")
    finally:
        logger.remove(handler_id)

    files = list(logs_dir.glob("stereocam_*.log"))
    assert len(files) == 1
    assert "calibration sample accepted" in files[0].read_text()
