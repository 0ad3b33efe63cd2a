"""
Test suite per il registro Key Usage / Extended Key Usage

Focus su:
- Lookup case-insensitive dei nomi
- Tabella OID degli extended key usage (mappa diretta e inversa)
- Registro immutabile e costruito una sola volta
"""

import pytest

from protocols.core.errors import UnknownUsageError
from protocols.core.types import ExtKeyUsage, KeyUsageFlag
from protocols.extensions.usages import (
    ext_key_usage_to_oid,
    get_usage_registry,
    key_usage_names,
    list_ext_key_usages,
    list_key_usages,
    oid_to_ext_key_usage,
    parse_ext_key_usage,
    parse_key_usage,
    parse_key_usages,
    resolve_ext_key_usages,
)

EXPECTED_EXT_KEY_USAGE_OIDS = {
    "Any": "2.5.29.37.0",
    "ServerAuth": "1.3.6.1.5.5.7.3.1",
    "ClientAuth": "1.3.6.1.5.5.7.3.2",
    "CodeSigning": "1.3.6.1.5.5.7.3.3",
    "EmailProtection": "1.3.6.1.5.5.7.3.4",
    "IPSECEndSystem": "1.3.6.1.5.5.7.3.5",
    "IPSECTunnel": "1.3.6.1.5.5.7.3.6",
    "IPSECUser": "1.3.6.1.5.5.7.3.7",
    "TimeStamping": "1.3.6.1.5.5.7.3.8",
    "OCSPSigning": "1.3.6.1.5.5.7.3.9",
    "MicrosoftServerGatedCrypto": "1.3.6.1.4.1.311.10.3.3",
    "NetscapeServerGatedCrypto": "2.16.840.1.113730.4.1",
    "MicrosoftCommercialCodeSigning": "1.3.6.1.4.1.311.2.1.22",
    "MicrosoftKernelCodeSigning": "1.3.6.1.4.1.311.61.1.1",
}


class TestKeyUsageLookup:
    """Test per i nomi dei key usage"""

    def test_nine_key_usages_in_bit_order(self):
        names = list_key_usages()
        assert len(names) == 9
        for bit, name in enumerate(names):
            assert parse_key_usage(name) == 1 << bit

    def test_parse_is_case_insensitive(self):
        assert parse_key_usage("DigitalSignature") == KeyUsageFlag.DIGITAL_SIGNATURE
        assert parse_key_usage("digitalsignature") == KeyUsageFlag.DIGITAL_SIGNATURE
        assert parse_key_usage("CERTSIGN") == KeyUsageFlag.CERT_SIGN
        assert parse_key_usage(" CRLSign ") == KeyUsageFlag.CRL_SIGN

    def test_unknown_key_usage(self):
        with pytest.raises(UnknownUsageError) as exc_info:
            parse_key_usage("FlyingCar")
        assert exc_info.value.name == "FlyingCar"

    def test_parse_key_usages_combines_bits(self):
        value = parse_key_usages(["DigitalSignature", "CertSign", "CRLSign"])
        assert value == (
            KeyUsageFlag.DIGITAL_SIGNATURE | KeyUsageFlag.CERT_SIGN | KeyUsageFlag.CRL_SIGN
        )
        assert parse_key_usages([]) == 0

    def test_key_usage_names(self):
        value = KeyUsageFlag.KEY_ENCIPHERMENT | KeyUsageFlag.DIGITAL_SIGNATURE
        assert key_usage_names(value) == ["DigitalSignature", "KeyEncipherment"]
        assert key_usage_names(0) == []


class TestExtKeyUsageLookup:
    """Test per la tabella extended key usage -> OID"""

    def test_oid_table_is_exact(self):
        assert list_ext_key_usages() == list(EXPECTED_EXT_KEY_USAGE_OIDS)
        for name, oid in EXPECTED_EXT_KEY_USAGE_OIDS.items():
            assert ext_key_usage_to_oid(name) == oid

    def test_inverse_lookup(self):
        for name, oid in EXPECTED_EXT_KEY_USAGE_OIDS.items():
            assert oid_to_ext_key_usage(oid) == ExtKeyUsage(name)

    def test_not_found(self):
        assert ext_key_usage_to_oid("Bogus") is None
        assert oid_to_ext_key_usage("1.2.3.4") is None

    def test_parse_accepts_member_and_any_case(self):
        assert parse_ext_key_usage(ExtKeyUsage.CLIENT_AUTH) is ExtKeyUsage.CLIENT_AUTH
        assert parse_ext_key_usage("serverauth") is ExtKeyUsage.SERVER_AUTH
        assert parse_ext_key_usage("OCSPSIGNING") is ExtKeyUsage.OCSP_SIGNING

    def test_parse_unknown(self):
        with pytest.raises(UnknownUsageError):
            parse_ext_key_usage("Bogus")

    def test_resolve_reports_dropped_purposes(self):
        oids, dropped = resolve_ext_key_usages(["ServerAuth", "Bogus", ExtKeyUsage.CLIENT_AUTH])
        assert oids == ["1.3.6.1.5.5.7.3.1", "1.3.6.1.5.5.7.3.2"]
        assert dropped == ["Bogus"]


class TestRegistry:
    """Test per l'immutabilita del registro"""

    def test_built_once(self):
        assert get_usage_registry() is get_usage_registry()

    def test_tables_are_read_only(self):
        registry = get_usage_registry()
        with pytest.raises(TypeError):
            registry.key_usages["Custom"] = KeyUsageFlag.DIGITAL_SIGNATURE
        with pytest.raises(TypeError):
            registry.oid_to_ext_key_usage["1.2.3"] = ExtKeyUsage.ANY
