"""
Account operations and the validate-then-move-funds transfer sequence.

A transfer is two independent balance increments against the store, a
debit followed by a credit, with a single compensating credit if the
second write is not applied. Nothing isolates concurrent requests that
touch the same accounts: two transfers from one sender can both pass the
balance check against the same value and overdraw it. With
``guarded_debit`` enabled the debit only applies while the balance still
covers the amount, which closes that window for debits.
"""
import logging
import math

from bson import ObjectId

from ..cache import CacheManager, account_key
from ..errors import (
    AccountConflictError,
    AccountInactiveError,
    AccountNotFoundError,
    BadRequestError,
    DuplicateAccountError,
    InsufficientFundsError,
    TransactionFailedError,
)
from ..publisher import EventPublisher
from ..schemas import (
    Account,
    AccountCreateIn,
    BalanceMovement,
    DepositIn,
    TransferIn,
    TransferParty,
    TransferRecord,
    WithdrawIn,
    utcnow,
)
from ..store import AccountStore

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "Money transfer"


def _is_blank(value) -> bool:
    if isinstance(value, (list, dict)):
        return False
    return not value


def _check_account_number(number):
    # anything but a string would reach the store as a query operator
    if not isinstance(number, str):
        raise BadRequestError("accountNumber must be a string")


def _check_amount(amount):
    # bool is an int subclass but never a valid amount
    if (
        isinstance(amount, bool)
        or not isinstance(amount, (int, float))
        or not math.isfinite(amount)
        or amount <= 0
    ):
        raise BadRequestError("Amount must be a positive number")


class BankingService:

    def __init__(self, store: AccountStore, cache: CacheManager = None,
                 publisher: EventPublisher = None, guarded_debit: bool = False):
        self.store = store
        self.cache = cache or CacheManager(host="")
        self.publisher = publisher or EventPublisher(host="")
        self.guarded_debit = guarded_debit

    # ============================
    #        ACCOUNTS
    # ============================
    async def list_accounts(self) -> list[Account]:
        return await self.store.list()

    async def get_account(self, account_number: str) -> dict:
        """Public account document, served from the cache when possible"""
        cache_key = account_key(account_number)
        cached = await self.cache.get(cache_key)
        if cached:
            return cached

        account = await self.store.get(account_number)
        if account is None:
            raise AccountNotFoundError(f"Account {account_number} does not exist")

        data = account.public()
        if not await self.cache.set(cache_key, data):
            return data

        # A balance change may have invalidated the key between the read and
        # the set; drop the entry unless the store still agrees with it
        current = await self.store.get(account_number)
        if current is None or current.public() != data:
            await self.cache.delete(cache_key)
            if current is None:
                raise AccountNotFoundError(f"Account {account_number} does not exist")
            return current.public()
        return data

    async def create_account(self, payload: AccountCreateIn) -> Account:
        if any(_is_blank(v) for v in (payload.accountNumber, payload.accountHolder, payload.email)):
            raise BadRequestError("accountNumber, accountHolder, and email are required")

        if not all(isinstance(v, str) for v in (payload.accountNumber, payload.accountHolder, payload.email)):
            raise BadRequestError("accountNumber, accountHolder, and email must be strings")

        balance = payload.initialBalance or 0
        if (
            isinstance(balance, bool)
            or not isinstance(balance, (int, float))
            or not math.isfinite(balance)
            or balance < 0
        ):
            raise BadRequestError("initialBalance must be a non-negative number")

        account = Account(
            accountNumber=payload.accountNumber,
            accountHolder=payload.accountHolder,
            email=payload.email,
            balance=balance,
        )
        try:
            await self.store.create(account)
        except DuplicateAccountError:
            raise AccountConflictError(f"Account {payload.accountNumber} already exists")

        logger.info("Created account %s for %s", account.accountNumber, account.accountHolder)
        return account

    # ============================
    #        DEPOSIT / WITHDRAW
    # ============================
    async def deposit(self, payload: DepositIn) -> BalanceMovement:
        number, amount = payload.accountNumber, payload.amount
        if _is_blank(number) or _is_blank(amount):
            raise BadRequestError("accountNumber and amount are required")
        _check_account_number(number)
        _check_amount(amount)

        account = await self._require_account(number, f"Account {number} does not exist")

        if not await self.store.increment_balance(number, amount):
            raise TransactionFailedError(f"Failed to deposit amount to account {number}")
        await self.cache.invalidate_accounts(number)

        updated = await self.store.get(number)
        movement = BalanceMovement(
            type="DEPOSIT",
            accountNumber=number,
            amount=amount,
            previousBalance=account.balance,
            newBalance=updated.balance,
        )
        logger.info("Deposited %s to %s (%s -> %s)", amount, number,
                    movement.previousBalance, movement.newBalance)
        await self.publisher.notify({
            "type": "DEPOSIT_COMPLETED",
            "accountNumber": number,
            "amount": amount,
            "createdAt": movement.timestamp.isoformat(),
        })
        return movement

    async def withdraw(self, payload: WithdrawIn) -> BalanceMovement:
        number, amount = payload.accountNumber, payload.amount
        if _is_blank(number) or _is_blank(amount):
            raise BadRequestError("accountNumber and amount are required")
        _check_account_number(number)
        _check_amount(amount)

        account = await self._require_account(number, f"Account {number} does not exist")

        if account.balance < amount:
            raise InsufficientFundsError(number, account.balance, amount)

        await self._debit(number, amount, "Failed to withdraw amount from account")
        await self.cache.invalidate_accounts(number)

        updated = await self.store.get(number)
        movement = BalanceMovement(
            type="WITHDRAWAL",
            accountNumber=number,
            amount=amount,
            previousBalance=account.balance,
            newBalance=updated.balance,
        )
        logger.info("Withdrew %s from %s (%s -> %s)", amount, number,
                    movement.previousBalance, movement.newBalance)
        await self.publisher.notify({
            "type": "WITHDRAWAL_COMPLETED",
            "accountNumber": number,
            "amount": amount,
            "createdAt": movement.timestamp.isoformat(),
        })
        return movement

    # ============================
    #        TRANSFER
    # ============================
    async def transfer(self, payload: TransferIn) -> TransferRecord:
        from_number, to_number, amount = payload.fromAccount, payload.toAccount, payload.amount

        # -- input validation, before any store access
        if _is_blank(from_number) or _is_blank(to_number) or _is_blank(amount):
            raise BadRequestError("fromAccount, toAccount, and amount are required")
        if not isinstance(from_number, str) or not isinstance(to_number, str):
            raise BadRequestError("fromAccount and toAccount must be strings")
        _check_amount(amount)
        if from_number == to_number:
            raise BadRequestError("Cannot transfer to the same account")

        logger.info("Transfer request: %s -> %s | amount %s", from_number, to_number, amount)

        sender = await self._require_account(
            from_number, f"Sender account {from_number} does not exist")
        receiver = await self._require_account(
            to_number, f"Receiver account {to_number} does not exist")

        if not sender.is_active:
            raise AccountInactiveError(f"Sender account {from_number} is not active")
        if not receiver.is_active:
            raise AccountInactiveError(f"Receiver account {to_number} is not active")

        logger.info("Sender balance: %s | required: %s", sender.balance, amount)
        # Read once here; the debit below does not re-check it unless guarded
        if sender.balance < amount:
            logger.info("Insufficient funds in %s", from_number)
            raise InsufficientFundsError(from_number, sender.balance, amount)

        sender_before = sender.balance
        receiver_before = receiver.balance
        transaction_id = str(ObjectId())

        # -- debit sender
        try:
            await self._debit(from_number, amount, "Failed to deduct amount from sender account")
        except TransactionFailedError:
            await self.publisher.report_error({
                "type": "TRANSFER_FAILED",
                "txId": transaction_id,
                "fromAccount": from_number,
                "toAccount": to_number,
                "amount": amount,
                "stage": "debit",
                "timestamp": utcnow().isoformat(),
            })
            raise
        await self.cache.invalidate_accounts(from_number)
        logger.info("Deducted %s from %s", amount, from_number)

        # -- credit receiver
        credited = await self.store.increment_balance(to_number, amount)
        if not credited:
            logger.warning("Failed to credit %s, rolling back debit of %s", to_number, from_number)
            await self._compensate(transaction_id, from_number, to_number, amount)

        await self.cache.invalidate_accounts(to_number)
        logger.info("Credited %s to %s", amount, to_number)

        updated_sender = await self.store.get(from_number)
        updated_receiver = await self.store.get(to_number)

        record = TransferRecord(
            transactionId=transaction_id,
            fromAccount=from_number,
            toAccount=to_number,
            amount=amount,
            description=payload.description or DEFAULT_DESCRIPTION,
            sender=TransferParty(
                accountNumber=from_number,
                accountHolder=sender.accountHolder,
                balanceBefore=sender_before,
                balanceAfter=updated_sender.balance,
            ),
            receiver=TransferParty(
                accountNumber=to_number,
                accountHolder=receiver.accountHolder,
                balanceBefore=receiver_before,
                balanceAfter=updated_receiver.balance,
            ),
        )
        logger.info("Transfer %s completed", transaction_id)

        await self.publisher.notify({
            "type": "TRANSFER_COMPLETED",
            "txId": transaction_id,
            "fromAccount": from_number,
            "toAccount": to_number,
            "amount": amount,
            "createdAt": record.timestamp.isoformat(),
        })
        return record

    # ============================
    #        HELPERS
    # ============================
    async def _require_account(self, number, message) -> Account:
        account = await self.store.get(number)
        if account is None:
            logger.info(message)
            raise AccountNotFoundError(message)
        return account

    async def _debit(self, number, amount, failure_message):
        if not self.guarded_debit:
            if not await self.store.increment_balance(number, -amount):
                logger.error("%s: %s", failure_message, number)
                raise TransactionFailedError(failure_message)
            return

        if await self.store.increment_balance(number, -amount, min_balance=amount):
            return

        # The conditional update missed: either funds went away since the
        # check or the record itself did
        current = await self.store.get(number)
        if current is not None and current.balance < amount:
            raise InsufficientFundsError(number, current.balance, amount)
        logger.error("%s: %s", failure_message, number)
        raise TransactionFailedError(failure_message)

    async def _compensate(self, transaction_id, from_number, to_number, amount):
        """Put the debited amount back on the sender, then fail the transfer"""
        try:
            restored = await self.store.increment_balance(from_number, amount)
        except Exception:
            logger.exception("Rollback credit to %s raised", from_number)
            restored = 0
        await self.cache.invalidate_accounts(from_number)

        if restored:
            await self.publisher.report_error({
                "type": "TRANSFER_FAILED",
                "txId": transaction_id,
                "fromAccount": from_number,
                "toAccount": to_number,
                "amount": amount,
                "stage": "credit",
                "timestamp": utcnow().isoformat(),
            })
            raise TransactionFailedError(
                "Failed to credit receiver account. Transaction rolled back.")

        logger.critical(
            "Rollback of transfer %s failed: account %s is short by %s, manual intervention required",
            transaction_id, from_number, amount)
        await self.publisher.report_error({
            "type": "COMPENSATION_FAILED",
            "txId": transaction_id,
            "fromAccount": from_number,
            "toAccount": to_number,
            "amount": amount,
            "timestamp": utcnow().isoformat(),
        })
        raise TransactionFailedError(
            "Failed to credit receiver account. Rollback failed; manual intervention required.")
