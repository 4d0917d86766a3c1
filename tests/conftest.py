import pytest

from extractors.transaction_assembler import TransactionAssembler
from loaders.document_fetcher import DocumentText, FetchFailure


RECEIPT_URL = "https://apps.cbe.com.et:100/?id=FT24064ABCDE12345678"

RECEIPT_TEXT = (
    "Commercial Bank of Ethiopia\n"
    "Payer  ABEBE KEBEDE  Account  1****1234\n"
    "Receiver  TSEHAY ALEMU  Account  1****5678\n"
    "Payment Date & Time  3/4/2024, 10:15:00 AM\n"
    "Reference No. (VAT Invoice No)  FT24064ABCDE\n"
    "Reason / Type of service  house rent\n"
    "Transferred Amount  1,500.00 ETB\n"
    "Commission or Service Charge  2.00 ETB\n"
    "Total amount debited from customers account  1,502.30 ETB\n"
)

MESSAGE_TEXT = (
    "Dear Abebe your Account 1*****1234 has been debited with ETB 1,500.00. "
    "Your Current Balance is ETB 12,345.67. Thank you for Banking with CBE! "
    + RECEIPT_URL
)


class FakeFetcher:
    """Fetch collaborator returning canned results and recording calls."""

    def __init__(self, responses=None, default=None):
        self.responses = responses or {}
        self.default = default if default is not None else FetchFailure("HTTP error: 404")
        self.calls = []

    def __call__(self, url):
        self.calls.append(url)
        result = self.responses.get(url, self.default)
        if isinstance(result, Exception):
            raise result
        return result


def receipt(
    amount="1,500.00",
    date="3/4/2024, 10:15:00 AM",
    receiver="TSEHAY ALEMU",
    reason="house rent"
):
    """Build receipt text for a single transfer."""
    return (
        f"Payer  ABEBE KEBEDE  Account  1****1234\n"
        f"Receiver  {receiver}  Account  1****5678\n"
        f"Payment Date & Time  {date}\n"
        f"Reason / Type of service  {reason}\n"
        f"Transferred Amount  {amount} ETB\n"
    )


def message(url, balance="1,000.00"):
    return f"You have transferred money. Your Current Balance is ETB {balance}. {url}"


@pytest.fixture
def fake_fetcher():
    return FakeFetcher(responses={RECEIPT_URL: DocumentText(RECEIPT_TEXT)})


@pytest.fixture
def assembler(fake_fetcher):
    return TransactionAssembler(fake_fetcher, "cbe.com.et")
