# test_eligibility.py
# Description: Tests for document eligibility and its per-generation cache
#
# Imports
import pytest
#
# Local Imports
from date_gutter.Buffer.text_types import DocumentIdentity
from date_gutter.Prefix.eligibility import EligibilityFilter, is_document_eligible
from date_gutter.config import GutterSettings, SettingsProvider
#
########################################################################################################################
#
# Tests:

class TestIsDocumentEligible:

    def test_file_with_enabled_extension(self):
        assert is_document_eligible(DocumentIdentity.for_file("/src/QRPGLESRC/ORDERS.RPGLE"), GutterSettings())

    def test_untitled_documents_use_their_assigned_name(self):
        settings = GutterSettings()
        assert is_document_eligible(DocumentIdentity.untitled("scratch.clle"), settings)
        assert not is_document_eligible(DocumentIdentity.untitled("Untitled-1"), settings)

    def test_disabled_globally(self):
        settings = GutterSettings(enabled=False)
        assert not is_document_eligible(DocumentIdentity.for_file("/src/orders.rpgle"), settings)

    @pytest.mark.parametrize("identity", [
        DocumentIdentity("member", "/LIB/QRPGLESRC/ORDERS.rpgle"),
        DocumentIdentity("streamfile", "/home/orders.rpgle"),
        DocumentIdentity("file", "/IBMi/LIB/QRPGLESRC/ORDERS.rpgle"),
        DocumentIdentity("git", "/src/orders.rpgle"),
    ])
    def test_remote_and_unknown_schemes(self, identity):
        assert not is_document_eligible(identity, GutterSettings())

    def test_extension_not_in_list(self):
        assert not is_document_eligible(DocumentIdentity.for_file("/src/readme.md"), GutterSettings())
        assert not is_document_eligible(DocumentIdentity.for_file("/src/Makefile"), GutterSettings())


class TestEligibilityFilter:

    def test_cache_follows_settings_generation(self):
        provider = SettingsProvider(GutterSettings())
        eligibility = EligibilityFilter(provider)
        identity = DocumentIdentity.for_file("/src/orders.rpgle")

        assert eligibility.is_eligible(identity)
        provider.update(GutterSettings(enabled_file_types=(".clle",)))
        assert not eligibility.is_eligible(identity)
        provider.update(GutterSettings())
        assert eligibility.is_eligible(identity)

    def test_cached_until_generation_moves(self, monkeypatch):
        provider = SettingsProvider(GutterSettings())
        eligibility = EligibilityFilter(provider)
        identity = DocumentIdentity.for_file("/src/orders.rpgle")
        calls = []

        import date_gutter.Prefix.eligibility as module
        original = module.is_document_eligible

        def _counting(identity_, settings):
            calls.append(identity_)
            return original(identity_, settings)

        monkeypatch.setattr(module, "is_document_eligible", _counting)
        for _ in range(3):
            eligibility.is_eligible(identity)
        assert len(calls) == 1

        eligibility.forget(identity)
        eligibility.is_eligible(identity)
        assert len(calls) == 2

#
# End of test_eligibility.py
########################################################################################################################
