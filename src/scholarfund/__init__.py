"""ScholarFund: scholarship fund administration with two-person approval."""

from scholarfund.common.exceptions import ScholarFundError
from scholarfund.common.security import Principal
from scholarfund.scholarships.identifiers import generate_scholarship_code

__all__ = [
    "Principal",
    "ScholarFundError",
    "generate_scholarship_code",
]
__version__ = "0.1.0"
