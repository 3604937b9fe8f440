# firmware/slots.py
"""Слоты конфигурации, зашитые в шаблонный образ при сборке.

Каждый слот: ASCII-строка фиксированной длины, которая встречается
в образе как есть. Шаблоны согласованы со сборкой прошивки и меняются
только вместе с ней, поэтому записаны литералами.

* wifi_ssid / wifi_password: учётные данные сети (по 64 байта);
* payment_address: адрес для платежей (64 байта);
* auth_token: токен авторизации сервиса (128 байт);
* service_uri: адрес сервиса (128 байт).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class PlaceholderSlot:
    name: str
    pattern: bytes

    @property
    def width(self) -> int:
        return len(self.pattern)

    def render(self, value: bytes) -> bytes:
        """Значение слева, остаток заполнен нулями."""
        staging = bytearray(self.width)
        staging[: len(value)] = value
        return bytes(staging)


WIFI_SSID = PlaceholderSlot(
    "wifi_ssid",
    b"WIFISSIDWIFISSIDWIFISSIDWIFISSIDWIFISSIDWIFISSIDWIFISSIDWIFISSID",
)
WIFI_PASSWORD = PlaceholderSlot(
    "wifi_password",
    b"WIFIPWDWIFIPWDWIFIPWDWIFIPWDWIFIPWDWIFIPWDWIFIPWDWIFIPWDWIFIPWDW",
)
PAYMENT_ADDRESS = PlaceholderSlot(
    "payment_address",
    b"PAYADDRPAYADDRPAYADDRPAYADDRPAYADDRPAYADDRPAYADDRPAYADDRPAYADDRP",
)
AUTH_TOKEN = PlaceholderSlot(
    "auth_token",
    b"AUTHTOKENAUTHTOKENAUTHTOKENAUTHTOKENAUTHTOKENAUTHTOKENAUTHTOKENA"
    b"UTHTOKENAUTHTOKENAUTHTOKENAUTHTOKENAUTHTOKENAUTHTOKENAUTHTOKENAU",
)
SERVICE_URI = PlaceholderSlot(
    "service_uri",
    b"SERVICEURISERVICEURISERVICEURISERVICEURISERVICEURISERVICEURISERV"
    b"ICEURISERVICEURISERVICEURISERVICEURISERVICEURISERVICEURISERVICEU",
)

SLOTS: Dict[str, PlaceholderSlot] = {
    s.name: s for s in (WIFI_SSID, WIFI_PASSWORD, PAYMENT_ADDRESS, AUTH_TOKEN, SERVICE_URI)
}
