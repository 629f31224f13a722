import os
import tempfile

# Keep the package's file log out of the real home directory
os.environ.setdefault("BRAINSPACE_LOG_DIR", tempfile.mkdtemp(prefix="brainspace-logs-"))
