"""DNS answer models for whitelist zone queries."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import dns.message
import dns.rdatatype


class RecordType(Enum):
    """Record types the whitelist logic distinguishes."""

    A = "A"  # Positive signal, even without a TXT payload
    TXT = "TXT"  # Carries the verdict reason
    OTHER = "OTHER"

    @classmethod
    def from_rdtype(cls, rdtype: int) -> "RecordType":
        """Map a dnspython rdatatype to the closed record type variant.

        Args:
            rdtype: Numeric DNS record type.

        Returns:
            RecordType: A, TXT or OTHER.
        """
        if rdtype == dns.rdatatype.A:
            return cls.A
        if rdtype == dns.rdatatype.TXT:
            return cls.TXT
        return cls.OTHER


@dataclass
class ResourceRecord:
    """One record from an answer section.

    Attributes:
        name: Owner name without the trailing dot.
        rtype: Classified record type.
        text: TXT payload (None for non-TXT records).
    """

    name: str
    rtype: RecordType
    text: Optional[str] = None

    def is_a(self) -> bool:
        return self.rtype is RecordType.A

    def is_txt(self) -> bool:
        return self.rtype is RecordType.TXT


@dataclass
class Answer:
    """Parsed result of one whitelist zone query.

    Attributes:
        qname: Query name that was asked.
        records: Answer-section records in wire order.
    """

    qname: str
    records: list[ResourceRecord] = field(default_factory=list)

    @classmethod
    def from_message(cls, qname: str, message: dns.message.Message) -> "Answer":
        """Build an Answer from a dnspython response message.

        TXT character-strings are decoded and joined with a single space.

        Args:
            qname: Query name that was asked.
            message: Response received from the nameserver.

        Returns:
            Answer: Records of the answer section, in order.
        """
        records = []
        for rrset in message.answer:
            name = rrset.name.to_text(omit_final_dot=True)
            rtype = RecordType.from_rdtype(rrset.rdtype)
            for rdata in rrset:
                text = None
                if rtype is RecordType.TXT:
                    text = " ".join(
                        s.decode("utf-8", errors="replace") for s in rdata.strings
                    )
                records.append(ResourceRecord(name=name, rtype=rtype, text=text))
        return cls(qname=qname, records=records)

    def is_empty(self) -> bool:
        return not self.records
