"""Property codec package: converters and entity <-> property map mapping."""

from finance_brain.codec.properties import (
    FinanceEntity,
    decode_account,
    decode_holding,
    decode_investment_account,
    decode_record,
    decode_transaction,
    encode,
    encode_account,
    encode_holding,
    encode_investment_account,
    encode_transaction,
    get_amount,
    get_property,
    get_reference,
    get_text,
    record_type,
)

__all__ = [
    "FinanceEntity",
    "decode_account",
    "decode_holding",
    "decode_investment_account",
    "decode_record",
    "decode_transaction",
    "encode",
    "encode_account",
    "encode_holding",
    "encode_investment_account",
    "encode_transaction",
    "get_amount",
    "get_property",
    "get_reference",
    "get_text",
    "record_type",
]
