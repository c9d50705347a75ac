import json
from pathlib import Path

import pytest

from abi_wizard.address_book import AddressBook, AddressBookError, ContractInfo

TOKEN = "0x" + "12" * 20
VAULT = "0x" + "34" * 20


def test_missing_file_is_an_empty_book(tmp_path: Path) -> None:
    book = AddressBook.load(tmp_path / "address_book.json")
    assert book.entries == []
    assert book.addresses_for("Token") == []


def test_remember_appends_once_and_saves(tmp_path: Path) -> None:
    path = tmp_path / "home" / "address_book.json"
    book = AddressBook.load(path)
    book.remember("Token", TOKEN)
    book.remember("Token", TOKEN)
    book.remember("Vault", VAULT)

    assert json.loads(path.read_text()) == [
        {"name": "Token", "address": TOKEN},
        {"name": "Vault", "address": VAULT},
    ]
    reloaded = AddressBook.load(path)
    assert reloaded.addresses_for("Token") == [TOKEN]
    assert reloaded.addresses_for("Other") == []


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"name": "Token"}),
        json.dumps(["Token"]),
        json.dumps([{"name": "", "address": TOKEN}]),
        json.dumps([{"name": "Token", "address": "0x1234"}]),
    ],
)
def test_invalid_books_are_rejected(tmp_path: Path, content: str) -> None:
    path = tmp_path / "address_book.json"
    path.write_text(content)
    with pytest.raises(AddressBookError):
        AddressBook.load(path)


def test_remember_validates_entries(tmp_path: Path) -> None:
    book = AddressBook(tmp_path / "address_book.json")
    with pytest.raises(AddressBookError):
        book.remember("Token", "not-an-address")
    assert not (tmp_path / "address_book.json").exists()


def test_contract_info_validation() -> None:
    ContractInfo("Token", TOKEN).validate()
    with pytest.raises(AddressBookError):
        ContractInfo("Token", "").validate()


def test_remember_ignores_case_differences(tmp_path: Path) -> None:
    path = tmp_path / "address_book.json"
    checksummed = "0xAbC0000000000000000000000000000000000123"
    path.write_text(json.dumps([{"name": "Token", "address": checksummed}]))
    book = AddressBook.load(path)

    book.remember("Token", checksummed.lower())
    book.remember("Vault", checksummed.lower())

    assert AddressBook.load(path).entries == [
        ContractInfo("Token", checksummed),
        ContractInfo("Vault", checksummed.lower()),
    ]
