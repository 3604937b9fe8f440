import os
from pathlib import Path

LOG_DIR = Path(os.environ.get("FW_TOOL_LOG_DIR", Path(__file__).parent / "logs"))

LOG_FILE = LOG_DIR / "session.jsonl"
APP_NAME = "FW Tool"

# шаблонный образ ESP32-C6 со слотами конфигурации
FIRMWARE_ESP32C6 = Path(os.environ.get("FIRMWARE_ESP32C6", "./tasmota32c6-rddl.bin"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING").upper()
