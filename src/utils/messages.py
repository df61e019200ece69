from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class PurchaseListChangedMessage(Message):
    """
    Fired by the purchase screen after any change to the purchase list,
    so the list view and running total are redrawn.
    """

    bubble = True


class TransactionJournaledMessage(Message):
    """
    Fired when a confirmed transaction has been written to the journal.
    Posted at App level, where the app logs it. The history screen does not
    listen for it; it reads the journal again whenever it is shown.
    """

    bubble = True

    def __init__(self, txn_no: int) -> None:
        super().__init__()
        self.txn_no = txn_no
