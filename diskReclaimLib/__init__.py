from diskReclaimLib.appConfig import AppConfig, load_config
from diskReclaimLib.diskCleaner import DiskCleaner
from diskReclaimLib.reclaimLoop import ReclaimLoop, ReclaimOutcome

__version__ = '1.0.0'
