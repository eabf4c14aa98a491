import unittest

from opencode_resume.config import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT_S,
    ENV_OPENCODE_PATH,
    ENV_OPENCODE_RESUME_TIMEOUT,
    ENV_OPENCODE_RESUME_URL,
    ResumeConfig,
    load_config,
)


class TestLoadConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = load_config({})
        self.assertEqual(cfg.base_url, DEFAULT_BASE_URL)
        self.assertEqual(cfg.timeout_s, DEFAULT_TIMEOUT_S)
        self.assertIsNone(cfg.opencode_path)
        self.assertEqual(cfg.port, 4096)

    def test_env_overrides(self) -> None:
        cfg = load_config(
            {
                ENV_OPENCODE_RESUME_URL: "http://127.0.0.1:5000/",
                ENV_OPENCODE_RESUME_TIMEOUT: "1.5",
                ENV_OPENCODE_PATH: "/opt/opencode",
            }
        )
        self.assertEqual(cfg.base_url, "http://127.0.0.1:5000")
        self.assertEqual(cfg.timeout_s, 1.5)
        self.assertEqual(cfg.opencode_path, "/opt/opencode")
        self.assertEqual(cfg.port, 5000)

    def test_bad_timeout_falls_back(self) -> None:
        for raw in ("soon", "-1", "0", " "):
            with self.subTest(raw=raw):
                self.assertEqual(load_config({ENV_OPENCODE_RESUME_TIMEOUT: raw}).timeout_s, DEFAULT_TIMEOUT_S)

    def test_with_base_url(self) -> None:
        cfg = ResumeConfig()
        self.assertIs(cfg.with_base_url(None), cfg)
        self.assertIs(cfg.with_base_url("  "), cfg)
        self.assertEqual(cfg.with_base_url("http://remote:80/").base_url, "http://remote:80")

    def test_port_absent(self) -> None:
        self.assertIsNone(ResumeConfig(base_url="http://localhost").port)


if __name__ == "__main__":
    unittest.main()
