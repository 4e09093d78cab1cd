"""Multi-instruction Solana transactions assembled by the token bridge builder."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

logger = logging.getLogger(__name__)

KeypairFactory = Callable[[], Keypair]


def random_keypair() -> Keypair:
    return Keypair()


@dataclass(frozen=True)
class SolanaOperation:
    """Unsigned-by-payer transaction whose instructions succeed or fail together.

    ``co_signers`` are the ephemeral accounts that already signed; the fee
    payer's signature is added by the caller's wallet.
    """

    instructions: tuple[Instruction, ...]
    labels: tuple[str, ...]
    fee_payer: Pubkey
    recent_blockhash: Hash
    co_signers: tuple[Pubkey, ...]
    transaction: Transaction

    def __len__(self) -> int:
        return len(self.instructions)

    def instruction(self, label: str) -> Instruction:
        return self.instructions[self.labels.index(label)]


def assemble(
    steps: Sequence[tuple[str, Instruction]],
    fee_payer: Pubkey,
    recent_blockhash: Hash,
    co_signers: Sequence[Keypair] = (),
) -> SolanaOperation:
    """Pack ``steps`` into one transaction and partially sign with ``co_signers``."""

    instructions = [ix for _, ix in steps]
    message = Message.new_with_blockhash(instructions, fee_payer, recent_blockhash)
    transaction = Transaction.new_unsigned(message)
    if co_signers:
        transaction.partial_sign(list(co_signers), recent_blockhash)

    labels = tuple(label for label, _ in steps)
    logger.debug("Assembled Solana transaction: %s", " -> ".join(labels))
    return SolanaOperation(
        instructions=tuple(instructions),
        labels=labels,
        fee_payer=fee_payer,
        recent_blockhash=recent_blockhash,
        co_signers=tuple(kp.pubkey() for kp in co_signers),
        transaction=transaction,
    )
