from ui.dialogs.binary_setup import BinarySetupDialog
from ui.dialogs.new_job import NewJobDialog

__all__ = ["BinarySetupDialog", "NewJobDialog"]
