"""
End-to-end back-office scenarios through the workflow services.
"""

from datetime import date
from decimal import Decimal

from insurance_kernel.domain.dtos import PaymentDetails
from insurance_kernel.domain.lifecycle import ContractStatus, IndemnificationStatus
from insurance_kernel.models.history_event import HistoryAction
from insurance_kernel.selectors.history_selector import HistorySelector


class TestContractRenewalScenario:
    def test_renew_pol_001(self, session, contract_service, make_contract, test_actor_id):
        contract = make_contract(
            numero_contrat="POL-001",
            date_debut=date(2024, 1, 1),
            date_fin=date(2024, 12, 31),
            montant_prime=Decimal("1000.00"),
        )

        renewed = contract_service.renew_contract(contract.id, date(2025, 12, 31))

        assert renewed.statut == ContractStatus.RENEWED
        assert renewed.date_fin == date(2025, 12, 31)

        events = HistorySelector(session).history_for_entity("Contrat", contract.id)
        assert len(events) == 2
        create, renew = events
        assert create.action == HistoryAction.CREATE
        assert create.valeurs_avant is None
        assert create.valeurs_apres["numero_contrat"] == "POL-001"
        assert create.valeurs_apres["montant_prime"] == "1000"

        assert renew.type_evenement == "Renouvellement Contrat"
        assert renew.valeurs_avant == {"date_fin": "2024-12-31", "statut": "Actif"}
        assert renew.valeurs_apres == {"date_fin": "2025-12-31", "statut": "Renouvelé"}
        assert renew.utilisateur_id == test_actor_id
        assert create.seq < renew.seq


class TestIndemnificationScenario:
    def test_propose_validate_pay(self, session, indemnification_service, make_claim):
        claim = make_claim()

        proposed = indemnification_service.propose_indemnification(claim.id, Decimal("5000"))
        validated = indemnification_service.validate_indemnification(proposed.id)
        paid = indemnification_service.record_payment(
            proposed.id, PaymentDetails(reference_paiement="PAY-42")
        )

        assert proposed.statut == IndemnificationStatus.PENDING_VALIDATION
        assert validated.statut == IndemnificationStatus.VALIDATED
        assert paid.statut == IndemnificationStatus.PAID
        assert paid.reference_paiement == "PAY-42"
        assert paid.date_paiement == date(2025, 6, 15)

        events = HistorySelector(session).history_for_entity("Indemnisation", proposed.id)
        assert [e.type_evenement for e in events] == [
            "Proposition Indemnisation",
            "Validation Indemnisation",
            "Paiement Indemnisation Enregistré",
        ]
        assert {e.id_entite_affectee for e in events} == {proposed.id}
        assert events[1].valeurs_avant == {"statut": "En attente de validation"}
        assert events[2].valeurs_apres["reference_paiement"] == "PAY-42"
        assert events[2].valeurs_apres["date_paiement"] == "2025-06-15"


class TestClaimToArchiveScenario:
    def test_claim_lifecycle_then_archive(
        self, session, claim_service, folder_service, indemnification_service, make_folder, make_claim
    ):
        folder = make_folder(numero_dossier="DOS-END")
        claim = make_claim(contract_id=folder.id_police, id_dossier=folder.id)
        claim_service.update_claim(claim.id, {"statut": "En expertise"})
        claim_service.update_claim(claim.id, {"statut": "Approuvé"})
        indemnification = indemnification_service.propose_indemnification(claim.id, "750")
        indemnification_service.validate_indemnification(indemnification.id)
        indemnification_service.record_payment(indemnification.id)
        claim_service.close_claim(claim.id, montant_regle="750")

        archive = folder_service.archive_folder(folder.id, "Sinistre réglé")

        archived_claim = archive.contenu_dossier["sinistres"][0]
        assert archived_claim["statut"] == "Clos"
        assert archived_claim["montant_regle"] == "750"
        assert claim_service.get_claim(claim.id).id_dossier is None

        claim_events = HistorySelector(session).history_for_entity("Sinistre", claim.id)
        assert len(claim_events) == 5
