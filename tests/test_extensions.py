"""
Test suite per il codec delle estensioni X.509

Focus su:
- Round trip marshal/unmarshal per ogni tipo di estensione
- Decodifica strict (OID errato, byte in coda)
- Compatibilita DER con le estensioni prodotte da cryptography
- Decodifica lenient tramite decode_extension
"""

import ipaddress

import pytest
from cryptography import x509
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from protocols.core.errors import (
    DecodingError,
    EncodingError,
    TrailingBytesError,
    WrongObjectIdentifierError,
)
from protocols.core.types import (
    OID_BASIC_CONSTRAINTS,
    OID_CERTIFICATE_TEMPLATE_NAME,
    OID_EXTENDED_KEY_USAGE,
    OID_KEY_USAGE,
    OID_SUBJECT_ALTERNATIVE_NAME,
    ExtensionRecord,
    ExtKeyUsage,
    KeyUsageFlag,
)
from protocols.extensions.codec import (
    BasicConstraintsExtension,
    CertificateTemplateExtension,
    ExtendedKeyUsageExtension,
    KeyUsageExtension,
    SubjectAltNameExtension,
    decode_extension,
)


def _with_trailing_byte(record: ExtensionRecord) -> ExtensionRecord:
    return ExtensionRecord(oid=record.oid, critical=record.critical, value=record.value + b"\x00")


class TestBasicConstraints:
    """Test per Basic Constraints"""

    @pytest.mark.parametrize(
        "is_ca,max_path_len",
        [(False, None), (True, None), (True, 0), (True, 3), (True, 300)],
    )
    def test_round_trip(self, is_ca, max_path_len):
        extension = BasicConstraintsExtension(is_ca=is_ca, max_path_len=max_path_len)
        record = extension.marshal()
        assert record.oid == OID_BASIC_CONSTRAINTS
        assert record.critical is True
        assert BasicConstraintsExtension.unmarshal(record) == extension

    def test_matches_cryptography_encoding(self):
        record = BasicConstraintsExtension(is_ca=True, max_path_len=0).marshal()
        assert record.value == x509.BasicConstraints(ca=True, path_length=0).public_bytes()

        record = BasicConstraintsExtension(is_ca=False).marshal()
        assert record.value == x509.BasicConstraints(ca=False, path_length=None).public_bytes()

    def test_negative_path_length(self):
        with pytest.raises(EncodingError):
            BasicConstraintsExtension(is_ca=True, max_path_len=-1).marshal()

    def test_trailing_bytes_rejected(self):
        record = BasicConstraintsExtension(is_ca=True, max_path_len=1).marshal()
        with pytest.raises(TrailingBytesError) as exc_info:
            BasicConstraintsExtension.unmarshal(_with_trailing_byte(record))
        assert exc_info.value.trailing == 1


class TestKeyUsage:
    """Test per Key Usage"""

    @pytest.mark.parametrize(
        "value",
        [
            0,
            KeyUsageFlag.DIGITAL_SIGNATURE,
            KeyUsageFlag.DIGITAL_SIGNATURE | KeyUsageFlag.KEY_ENCIPHERMENT,
            KeyUsageFlag.CERT_SIGN | KeyUsageFlag.CRL_SIGN,
            KeyUsageFlag.KEY_AGREEMENT | KeyUsageFlag.DECIPHER_ONLY,
            0x1FF,
        ],
    )
    def test_round_trip(self, value):
        extension = KeyUsageExtension(value=value)
        decoded = KeyUsageExtension.unmarshal(extension.marshal())
        assert decoded.value == value
        assert decoded.critical is True

    def test_matches_cryptography_encoding(self):
        record = KeyUsageExtension(
            value=KeyUsageFlag.DIGITAL_SIGNATURE | KeyUsageFlag.CERT_SIGN | KeyUsageFlag.CRL_SIGN
        ).marshal()
        expected = x509.KeyUsage(
            digital_signature=True,
            content_commitment=False,
            key_encipherment=False,
            data_encipherment=False,
            key_agreement=False,
            key_cert_sign=True,
            crl_sign=True,
            encipher_only=False,
            decipher_only=False,
        )
        assert record.oid == OID_KEY_USAGE
        assert record.value == expected.public_bytes()

    def test_out_of_range_bits(self):
        with pytest.raises(EncodingError):
            KeyUsageExtension(value=1 << 9).marshal()

    @pytest.mark.parametrize(
        "value",
        [
            KeyUsageFlag.KEY_ENCIPHERMENT | KeyUsageFlag.ENCIPHER_ONLY,
            KeyUsageFlag.DECIPHER_ONLY,
        ],
    )
    def test_encipher_decipher_only_require_key_agreement(self, value):
        with pytest.raises(EncodingError, match="key agreement"):
            KeyUsageExtension(value=value).marshal()

    def test_wrong_object_identifier(self):
        record = BasicConstraintsExtension(is_ca=True).marshal()
        with pytest.raises(WrongObjectIdentifierError) as exc_info:
            KeyUsageExtension.unmarshal(record)
        assert exc_info.value.expected == OID_KEY_USAGE
        assert exc_info.value.actual == OID_BASIC_CONSTRAINTS

    def test_trailing_bytes_rejected(self):
        record = KeyUsageExtension(value=KeyUsageFlag.DIGITAL_SIGNATURE).marshal()
        with pytest.raises(DecodingError):
            KeyUsageExtension.unmarshal(_with_trailing_byte(record))

    def test_malformed_payload(self):
        record = ExtensionRecord(oid=OID_KEY_USAGE, critical=True, value=b"\x30\x00")
        with pytest.raises(DecodingError):
            KeyUsageExtension.unmarshal(record)


class TestExtendedKeyUsage:
    """Test per Extended Key Usage"""

    def test_round_trip(self):
        extension = ExtendedKeyUsageExtension(
            oids=("1.3.6.1.5.5.7.3.1", "1.3.6.1.5.5.7.3.2", "1.2.3.4.5")
        )
        record = extension.marshal()
        assert record.oid == OID_EXTENDED_KEY_USAGE
        assert record.critical is False
        assert ExtendedKeyUsageExtension.unmarshal(record) == extension

    def test_unknown_purpose_dropped(self):
        extension = ExtendedKeyUsageExtension.from_purposes(["ServerAuth", "Bogus"])
        assert extension.oids == ("1.3.6.1.5.5.7.3.1",)
        decoded = ExtendedKeyUsageExtension.unmarshal(extension.marshal())
        assert decoded.purposes() == [ExtKeyUsage.SERVER_AUTH]

    def test_matches_cryptography_encoding(self):
        record = ExtendedKeyUsageExtension.from_purposes(["ServerAuth", "ClientAuth"]).marshal()
        expected = x509.ExtendedKeyUsage(
            [ExtendedKeyUsageOID.SERVER_AUTH, ExtendedKeyUsageOID.CLIENT_AUTH]
        )
        assert record.value == expected.public_bytes()

    def test_purposes_skip_unknown_oids(self):
        extension = ExtendedKeyUsageExtension(oids=("1.2.3.4", "1.3.6.1.5.5.7.3.9"))
        assert extension.purposes() == [ExtKeyUsage.OCSP_SIGNING]

    def test_empty_list_rejected(self):
        with pytest.raises(EncodingError):
            ExtendedKeyUsageExtension(oids=()).marshal()

    def test_malformed_oid_rejected(self):
        with pytest.raises(EncodingError):
            ExtendedKeyUsageExtension(oids=("not.an.oid",)).marshal()

    def test_trailing_bytes_rejected(self):
        record = ExtendedKeyUsageExtension(oids=("1.3.6.1.5.5.7.3.1",)).marshal()
        with pytest.raises(TrailingBytesError):
            ExtendedKeyUsageExtension.unmarshal(_with_trailing_byte(record))


class TestCertificateTemplateName:
    """Test per l'estensione certificate template name"""

    def test_round_trip(self):
        extension = CertificateTemplateExtension(name="WebServer")
        record = extension.marshal()
        assert record.oid == OID_CERTIFICATE_TEMPLATE_NAME
        assert CertificateTemplateExtension.unmarshal(record) == extension

    def test_empty_name_rejected(self):
        with pytest.raises(EncodingError, match="no certificate type specified"):
            CertificateTemplateExtension(name="").marshal()

    def test_non_printable_name_rejected(self):
        with pytest.raises(EncodingError):
            CertificateTemplateExtension(name="Web_Server").marshal()

    def test_wrong_object_identifier(self):
        record = KeyUsageExtension(value=KeyUsageFlag.DIGITAL_SIGNATURE).marshal()
        with pytest.raises(WrongObjectIdentifierError):
            CertificateTemplateExtension.unmarshal(record)


class TestSubjectAltName:
    """Test per Subject Alternative Name"""

    def test_matches_cryptography_encoding(self):
        extension = SubjectAltNameExtension(
            dns_names=("example.com",),
            email_addresses=("ops@example.com",),
            ip_addresses=(ipaddress.ip_address("10.0.0.5"),),
            uris=("spiffe://cluster/ns",),
        )
        expected = x509.SubjectAlternativeName([
            x509.DNSName("example.com"),
            x509.RFC822Name("ops@example.com"),
            x509.IPAddress(ipaddress.ip_address("10.0.0.5")),
            x509.UniformResourceIdentifier("spiffe://cluster/ns"),
        ])

        record = extension.marshal()

        assert record.oid == OID_SUBJECT_ALTERNATIVE_NAME
        assert record.value == expected.public_bytes()
        assert SubjectAltNameExtension.unmarshal(record) == extension

    def test_other_alternatives_ignored(self):
        san = x509.SubjectAlternativeName([
            x509.DirectoryName(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Directory")])),
            x509.DNSName("example.com"),
            x509.RegisteredID(x509.ObjectIdentifier("1.2.3.4")),
        ])
        record = ExtensionRecord(
            oid=OID_SUBJECT_ALTERNATIVE_NAME, critical=False, value=san.public_bytes()
        )

        decoded = SubjectAltNameExtension.unmarshal(record)

        assert decoded.dns_names == ("example.com",)
        assert decoded.ip_addresses == ()

    def test_empty_rejected(self):
        with pytest.raises(EncodingError):
            SubjectAltNameExtension().marshal()

    def test_truncated_value(self):
        record = ExtensionRecord(
            oid=OID_SUBJECT_ALTERNATIVE_NAME, critical=False, value=b"\x30\x04\x82\x03ab"
        )
        with pytest.raises(DecodingError):
            SubjectAltNameExtension.unmarshal(record)


class TestLenientDecoding:
    """Test per decode_extension (usato dal template deriver)"""

    def test_known_extension_decoded(self):
        record = BasicConstraintsExtension(is_ca=True, max_path_len=2).marshal()
        assert decode_extension(record) == BasicConstraintsExtension(is_ca=True, max_path_len=2)

    def test_unknown_oid_returns_none(self):
        record = ExtensionRecord(oid="1.2.3.4", critical=False, value=b"\x05\x00")
        assert decode_extension(record) is None

    def test_malformed_payload_returns_none(self):
        record = ExtensionRecord(oid=OID_BASIC_CONSTRAINTS, critical=True, value=b"\x04\x00")
        assert decode_extension(record) is None

    def test_trailing_bytes_return_none(self):
        record = KeyUsageExtension(value=KeyUsageFlag.CERT_SIGN).marshal()
        assert decode_extension(_with_trailing_byte(record)) is None

    def test_restricted_kinds(self):
        record = CertificateTemplateExtension(name="WebServer").marshal()
        assert decode_extension(record, kinds=(KeyUsageExtension,)) is None
