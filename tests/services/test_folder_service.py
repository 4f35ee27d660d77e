"""
FolderService: one folder per contract, and all-or-nothing archiving.
"""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from insurance_kernel.db.engine import session_scope
from insurance_kernel.domain.context import ActorContext
from insurance_kernel.exceptions import (
    AuditWriteError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from insurance_kernel.models.claim import Claim
from insurance_kernel.models.folder import Archive, Folder
from insurance_kernel.models.history_event import HistoryEvent
from insurance_kernel.services.audit_recorder import AuditRecorder
from insurance_kernel.services.claim_service import ClaimService
from insurance_kernel.services.client_service import ClientService
from insurance_kernel.services.contract_service import ContractService
from insurance_kernel.services.document_service import DocumentService
from insurance_kernel.services.folder_service import FolderService


class TestCreateFolder:
    def test_create_defaults_creation_date_to_today(self, folder_service, make_contract):
        contract = make_contract()
        info = folder_service.create_folder("DOS-001", contract.id, titre="Sinistres auto")
        assert info.date_creation == date(2025, 6, 15)
        assert folder_service.find_for_contract(contract.id) == info

    def test_one_folder_per_contract(self, make_folder, make_contract):
        contract = make_contract()
        make_folder(contract_id=contract.id)
        with pytest.raises(DuplicateError) as exc_info:
            make_folder(contract_id=contract.id)
        assert exc_info.value.field == "id_police"

    def test_duplicate_number(self, make_folder):
        make_folder(numero_dossier="DOS-DUP")
        with pytest.raises(DuplicateError) as exc_info:
            make_folder(numero_dossier="DOS-DUP")
        assert exc_info.value.field == "numero_dossier"

    def test_unknown_folder_state(self, make_folder):
        with pytest.raises(NotFoundError) as exc_info:
            make_folder(id_etat_dossier=uuid4())
        assert exc_info.value.entity_type == "EtatDossier"

    def test_known_folder_state(self, make_folder, reference_data):
        info = make_folder(id_etat_dossier=reference_data.folder_state_id)
        assert info.id_etat_dossier == reference_data.folder_state_id

    def test_update_title(self, folder_service, make_folder):
        folder = make_folder()
        assert folder_service.update_folder(folder.id, {"titre": "Renommé"}).titre == "Renommé"


class TestArchiveFolder:
    def test_archive_snapshots_and_detaches(
        self, session, folder_service, make_folder, make_claim, test_actor_id, deterministic_clock
    ):
        folder = make_folder(numero_dossier="DOS-ARCH")
        claim = make_claim(contract_id=folder.id_police, id_dossier=folder.id, numero_sinistre="SIN-ARCH")
        document = DocumentService(session, ActorContext(actor_id=test_actor_id), deterministic_clock).register_document(
            "constat.pdf", "/docs/constat.pdf", id_dossier=folder.id
        )

        archive = folder_service.archive_folder(folder.id, "Dossier soldé")

        assert archive.numero_dossier == "DOS-ARCH"
        assert archive.raison_archivage == "Dossier soldé"
        assert archive.archive_par_id == test_actor_id
        assert archive.contenu_dossier["dossier"]["numero_dossier"] == "DOS-ARCH"
        assert [c["numero_sinistre"] for c in archive.contenu_dossier["sinistres"]] == ["SIN-ARCH"]
        assert [d["nom_fichier"] for d in archive.contenu_dossier["documents"]] == ["constat.pdf"]

        with pytest.raises(NotFoundError):
            folder_service.get_folder(folder.id)
        assert session.get(Claim, claim.id).id_dossier is None
        assert DocumentService(session).get_document(document.id).id_dossier is None

    def test_archive_history(self, session, folder_service, make_folder, make_claim):
        folder = make_folder(numero_dossier="DOS-HIST")
        claim = make_claim(contract_id=folder.id_police, id_dossier=folder.id)
        folder_service.archive_folder(folder.id, "Fin de contrat")

        folder_event = session.execute(
            select(HistoryEvent)
            .where(HistoryEvent.id_entite_affectee == folder.id)
            .order_by(HistoryEvent.seq.desc())
        ).scalars().first()
        assert folder_event.type_evenement == "Archivage Dossier"
        assert folder_event.valeurs_avant["numero_dossier"] == "DOS-HIST"
        assert folder_event.valeurs_apres is None

        claim_event = session.execute(
            select(HistoryEvent)
            .where(HistoryEvent.id_entite_affectee == claim.id)
            .order_by(HistoryEvent.seq.desc())
        ).scalars().first()
        assert claim_event.valeurs_avant == {"id_dossier": str(folder.id)}
        assert claim_event.valeurs_apres == {"id_dossier": None}
        assert claim_event.description.startswith("Détaché du dossier archivé DOS-HIST")

    def test_archive_lookup(self, folder_service, make_folder):
        folder = make_folder(numero_dossier="DOS-LOOK")
        archive = folder_service.archive_folder(folder.id, "Clôture")
        assert folder_service.get_archive(archive.id) == archive
        assert [a.id for a in folder_service.list_archives(numero_dossier="DOS-LOOK")] == [archive.id]

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reason_is_required(self, folder_service, make_folder, reason):
        folder = make_folder()
        with pytest.raises(ValidationError) as exc_info:
            folder_service.archive_folder(folder.id, reason)
        assert exc_info.value.field == "raison_archivage"
        assert folder_service.get_folder(folder.id) == folder

    def test_unknown_folder(self, folder_service):
        with pytest.raises(NotFoundError):
            folder_service.archive_folder(uuid4(), "Clôture")

    def test_folder_number_can_be_reused_after_archiving(self, folder_service, make_folder):
        folder = make_folder(numero_dossier="DOS-REUSE")
        folder_service.archive_folder(folder.id, "Clôture")
        again = folder_service.create_folder("DOS-REUSE", folder.id_police)
        assert again.numero_dossier == "DOS-REUSE"


class TestArchiveAtomicity:
    """A failure anywhere in archive_folder leaves no trace once the transaction rolls back."""

    def _seed(self, factory, seed_reference, context, clock):
        with session_scope(factory) as s:
            ref = seed_reference(s)
            client = ClientService(s, context, clock).create_client(
                "Dupont", "Alex", "atomic@example.com"
            )
            contract = ContractService(s, context, clock).create_contract(
                "POL-ATOM",
                date(2025, 1, 1),
                date(2025, 12, 31),
                "1200",
                client.id,
                ref.insurance_type_id,
                ref.company_id,
            )
            folder = FolderService(s, context, clock).create_folder("DOS-ATOM", contract.id)
            claim = ClaimService(s, context, clock).create_claim(
                "SIN-ATOM",
                date(2025, 6, 1),
                "Collision",
                contract.id,
                id_dossier=folder.id,
                date_declaration=date(2025, 6, 2),
            )
        return folder.id, claim.id

    def _counts(self, factory):
        with session_scope(factory) as s:
            return (
                s.execute(select(func.count()).select_from(HistoryEvent)).scalar_one(),
                s.execute(select(func.count()).select_from(Archive)).scalar_one(),
            )

    def test_audit_failure_rolls_everything_back(
        self, committing_factory, seed_reference, actor_context, deterministic_clock, monkeypatch
    ):
        folder_id, claim_id = self._seed(
            committing_factory, seed_reference, actor_context, deterministic_clock
        )
        history_before, archives_before = self._counts(committing_factory)

        def _fail(self, entity_label, entity_id, *args, **kwargs):
            raise AuditWriteError(entity_label, entity_id, "simulated failure")

        monkeypatch.setattr(AuditRecorder, "record_delete", _fail)

        with pytest.raises(AuditWriteError):
            with session_scope(committing_factory) as s:
                FolderService(s, actor_context, deterministic_clock).archive_folder(
                    folder_id, "Clôture"
                )

        with session_scope(committing_factory) as s:
            assert s.get(Folder, folder_id) is not None
            assert s.get(Claim, claim_id).id_dossier == folder_id
        assert self._counts(committing_factory) == (history_before, archives_before)

    def test_successful_archive_commits(
        self, committing_factory, seed_reference, actor_context, deterministic_clock
    ):
        folder_id, claim_id = self._seed(
            committing_factory, seed_reference, actor_context, deterministic_clock
        )
        history_before, _ = self._counts(committing_factory)

        with session_scope(committing_factory) as s:
            FolderService(s, actor_context, deterministic_clock).archive_folder(folder_id, "Clôture")

        with session_scope(committing_factory) as s:
            assert s.get(Folder, folder_id) is None
            assert s.get(Claim, claim_id).id_dossier is None
        # claim detach + folder delete
        assert self._counts(committing_factory) == (history_before + 2, 1)
