# poscart/data/models/invoice_sequence.py
from sqlalchemy import Column, Integer, String

from poscart.data.database import Base


class InvoiceSequenceModel(Base):
    """Licznik faktur na dany dzien (UTC), inkrementowany w transakcji checkoutu."""

    __tablename__ = "invoice_sequences"

    day = Column(String(8), primary_key=True)  # YYYYMMDD
    last_seq = Column(Integer, nullable=False, default=0)
