from __future__ import annotations

from sqlalchemy import BigInteger, CheckConstraint, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Admin(Base):
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(64), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)

    def __repr__(self) -> str:
        # keep the verifier and email out of logs
        return f"Admin(id={self.id!r}, username={self.username!r})"


class Approval(Base):
    __tablename__ = "approvals"

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True, index=True)
    approved_at = Column(BigInteger, nullable=False)  # unix seconds


class Denial(Base):
    __tablename__ = "denials"

    id = Column(Integer, primary_key=True, autoincrement=True)
    admin_id = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True, index=True)
    denied_at = Column(BigInteger, nullable=False)  # unix seconds
    reason = Column(Text, nullable=False, default="")


class Site(Base):
    __tablename__ = "sites"
    __table_args__ = (
        CheckConstraint(
            "approval_id IS NULL OR denial_id IS NULL",
            name="ck_sites_single_decision",
        ),
    )

    # insertion order of this column is the ring order
    id = Column(Integer, primary_key=True, autoincrement=True)
    root_url = Column(String(2048), nullable=False, unique=True)
    email = Column(String(255), nullable=False)
    approval_id = Column(Integer, ForeignKey("approvals.id"), nullable=True, index=True)
    denial_id = Column(Integer, ForeignKey("denials.id"), nullable=True)


class SessionRow(Base):
    """Cookie login of one admin; ``sid`` is the cookie value."""

    __tablename__ = "sessions"

    sid = Column(String(64), primary_key=True)
    admin_id = Column(Integer, ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(BigInteger, nullable=False)  # unix seconds

    def expired(self, now: int) -> bool:
        return int(self.expires_at) < now
