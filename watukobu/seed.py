"""
Demo data for local development.

Run with ``python -m watukobu.seed``. Records are keyed by stable ids,
emails and loan ids, so running it again leaves existing rows untouched.
"""
import uuid
from datetime import datetime, timedelta
from typing import Dict

from sqlalchemy.orm import Session

from watukobu.core.logging import get_logger, setup_logging
from watukobu.database import SessionLocal, init_db
from watukobu.models.database import (
    Asset, Assignment, Branch, PaymentReport, User, VisitReport,
)
from watukobu.models.enums import (
    AssetStatus, AssignmentStatus, PaymentMatchStatus, PaymentMethod, PaymentOutcome, Role,
    SpkStatus, ValidationStatus, VisitOutcome,
)

logger = get_logger(__name__)

SEED_NAMESPACE = uuid.UUID("5b0c3e8e-6f2a-4d0e-9a51-7d7f1f0c2a10")

BRANCHES = [
    {"name": "KCP Jakarta Selatan", "region": "DKI Jakarta"},
    {"name": "KCP Bogor Kota", "region": "Jawa Barat"},
]

USERS = [
    {"email": "admin@watukobu.co.id", "name": "Admin Pusat", "role": Role.ADMIN,
     "employee_id": "WK-001", "area": "Head Office"},
    {"email": "manager@watukobu.co.id", "name": "Pak Manager", "role": Role.MANAGER,
     "employee_id": "WK-002", "area": "Jakarta Selatan"},
    {"email": "budi.santoso@watukobu.co.id", "name": "Budi Santoso", "role": Role.COLLECTOR,
     "employee_id": "WK-003", "area": "Jakarta Selatan"},
    {"email": "dewi.lestari@watukobu.co.id", "name": "Dewi Lestari", "role": Role.COLLECTOR,
     "employee_id": "WK-004", "area": "Bogor"},
]

ASSETS = [
    {"loan_id": "LOAN-2024-001", "debtor_name": "Ahmad Wijaya",
     "address": "Jl. Merpati No. 15, Tebet, Jakarta Selatan", "lat": -6.2297, "lng": 106.8486,
     "phone": "081234567890", "principal": 25_000_000, "arrears": 5_000_000,
     "interest": 750_000, "penalty": 250_000, "status": AssetStatus.MACET,
     "branch": "KCP Jakarta Selatan", "collector": "budi.santoso@watukobu.co.id"},
    {"loan_id": "LOAN-2024-002", "debtor_name": "Siti Rahayu",
     "address": "Jl. Kenanga No. 22, Pancoran, Jakarta Selatan", "lat": -6.2456, "lng": 106.8512,
     "phone": "081298765432", "principal": 18_000_000, "arrears": 3_600_000,
     "interest": 540_000, "penalty": 180_000, "status": AssetStatus.JANJI_BAYAR,
     "branch": "KCP Jakarta Selatan", "collector": "budi.santoso@watukobu.co.id"},
    {"loan_id": "LOAN-2024-003", "debtor_name": "Rudi Hermawan",
     "address": "Jl. Mawar No. 8, Pasar Minggu, Jakarta Selatan", "lat": -6.2834, "lng": 106.8456,
     "phone": "082111222333", "principal": 32_000_000, "arrears": 8_000_000,
     "interest": 1_200_000, "penalty": 400_000, "status": AssetStatus.MACET,
     "branch": "KCP Jakarta Selatan", "collector": "budi.santoso@watukobu.co.id"},
    {"loan_id": "LOAN-2024-004", "debtor_name": "Eko Prasetyo",
     "address": "Jl. Raya Pajajaran No. 45, Bogor Tengah", "lat": -6.5971, "lng": 106.7972,
     "phone": "085333444555", "principal": 15_000_000, "arrears": 2_250_000,
     "interest": 337_500, "penalty": 112_500, "status": AssetStatus.LANCAR,
     "branch": "KCP Bogor Kota", "collector": "dewi.lestari@watukobu.co.id"},
    {"loan_id": "LOAN-2024-005", "debtor_name": "Maya Sari",
     "address": "Jl. Surya Kencana No. 12, Bogor Selatan", "lat": -6.6156, "lng": 106.7891,
     "phone": "087666777888", "principal": 22_000_000, "arrears": 4_400_000,
     "interest": 660_000, "penalty": 220_000, "status": AssetStatus.MACET,
     "branch": "KCP Bogor Kota", "collector": "dewi.lestari@watukobu.co.id"},
]


def seed_id(key: str) -> str:
    return str(uuid.uuid5(SEED_NAMESPACE, key))


def _seed_branches(session: Session) -> Dict[str, Branch]:
    branches = {}
    for data in BRANCHES:
        branch = session.query(Branch).filter(Branch.name == data["name"]).first()
        if branch is None:
            branch = Branch(**data)
            session.add(branch)
        branches[data["name"]] = branch
    session.flush()
    return branches


def _seed_users(session: Session) -> Dict[str, User]:
    users = {}
    for data in USERS:
        user = session.query(User).filter(User.email == data["email"]).first()
        if user is None:
            user = User(**{**data, "role": data["role"].value, "is_active": True})
            session.add(user)
        users[data["email"]] = user
    session.flush()
    return users


def _seed_assets(session: Session, branches: Dict[str, Branch], users: Dict[str, User]) -> Dict[str, Asset]:
    assets = {}
    now = datetime.utcnow()
    for data in ASSETS:
        asset = session.query(Asset).filter(Asset.loan_id == data["loan_id"]).first()
        if asset is None:
            branch = branches[data["branch"]]
            collector = users[data["collector"]]
            asset = Asset(
                loan_id=data["loan_id"],
                debtor_name=data["debtor_name"],
                branch=branch.name,
                region=branch.region,
                branch_id=branch.id,
                spk_status=SpkStatus.AKTIF.value,
                credit_type="Kredit Kendaraan Bermotor",
                collateral_address=data["address"],
                identity_address=data["address"],
                phone=data["phone"],
                initial_plafond=data["principal"],
                principal_balance=data["principal"],
                interest_arrears=data["interest"],
                penalty_arrears=data["penalty"],
                principal_arrears=data["arrears"] - data["interest"] - data["penalty"],
                total_arrears=data["arrears"],
                total_payoff=data["principal"] + data["arrears"],
                status=data["status"].value,
                location_lat=data["lat"],
                location_lng=data["lng"],
                collector_id=collector.id,
            )
            session.add(asset)
            session.flush()
            session.add(
                Assignment(
                    asset_id=asset.id,
                    collector_id=collector.id,
                    status=AssignmentStatus.ACTIVE.value,
                    due_date=now + timedelta(days=7),
                    assigned_at=now,
                )
            )
        assets[data["loan_id"]] = asset
    session.flush()
    return assets


def _seed_reports(session: Session, assets: Dict[str, Asset], users: Dict[str, User]) -> None:
    now = datetime.utcnow()
    budi = users["budi.santoso@watukobu.co.id"]

    approved_at = now - timedelta(days=2)
    visits = [
        {
            "id": seed_id("visit-sample-001"),
            "asset_id": assets["LOAN-2024-001"].id,
            "outcome": VisitOutcome.BERTEMU.value,
            "notes": "Debitur berjanji akan membayar minggu depan. Ekonomi sedang sulit.",
            "problem_description": "Ekonomi sedang sulit",
            "gps_lat": -6.2297,
            "gps_lng": 106.8486,
            "photo_front": "/uploads/visits/loan-2024-001-front.jpg",
            "photo_side": "/uploads/visits/loan-2024-001-side.jpg",
            "photo_front_taken_at": approved_at - timedelta(minutes=10),
            "photo_side_taken_at": approved_at - timedelta(minutes=8),
            "submitted_at": approved_at,
            "status": ValidationStatus.APPROVED.value,
            "processed_at": approved_at + timedelta(hours=3),
            "processed_by": users["admin@watukobu.co.id"].id,
        },
        {
            "id": seed_id("visit-sample-002"),
            "asset_id": assets["LOAN-2024-002"].id,
            "outcome": VisitOutcome.TIDAK_BERTEMU.value,
            "notes": "Tidak ada orang di rumah. Tetangga bilang sedang keluar kota.",
            "gps_lat": -6.2456,
            "gps_lng": 106.8512,
            "submitted_at": now - timedelta(days=1),
            "status": ValidationStatus.PENDING.value,
        },
    ]
    for data in visits:
        if session.get(VisitReport, data["id"]) is None:
            session.add(VisitReport(collector_id=budi.id, **data))

    payment_id = seed_id("payment-sample-001")
    if session.get(PaymentReport, payment_id) is None:
        session.add(
            PaymentReport(
                id=payment_id,
                asset_id=assets["LOAN-2024-001"].id,
                collector_id=budi.id,
                submitted_at=now - timedelta(days=1),
                payment_method=PaymentMethod.CASH.value,
                payment_outcome=PaymentOutcome.PARTIAL.value,
                paid_amount=500_000,
                status=PaymentMatchStatus.MATCHED.value,
                processed_at=now - timedelta(hours=20),
                processed_by=users["admin@watukobu.co.id"].id,
            )
        )


def seed_demo_data(session: Session) -> None:
    """Insert the demo branches, users, assets, assignments and reports that are missing."""
    branches = _seed_branches(session)
    users = _seed_users(session)
    assets = _seed_assets(session, branches, users)
    _seed_reports(session, assets, users)
    session.commit()
    logger.info(
        "Demo data seeded",
        branches=len(branches),
        users=len(users),
        assets=len(assets),
    )


if __name__ == "__main__":
    setup_logging()
    init_db()
    session = SessionLocal()
    try:
        seed_demo_data(session)
    finally:
        session.close()
