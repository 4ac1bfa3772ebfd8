from sqlalchemy import BigInteger, Column, Float, Integer, String
from database import Base


class ApiKey(Base):
    __tablename__ = "api_key_store"

    name = Column(String, primary_key=True)
    key = Column(String, nullable=False)


class GasSample(Base):
    __tablename__ = "ethgasdata"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ts = Column(BigInteger, nullable=False, index=True)
    fast = Column(Float)
    fastest = Column(Float)
    safe_low = Column("safelow", Float)
    average = Column(Float)
