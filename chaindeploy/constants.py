from pathlib import Path

import chaindeploy

#
# Filesystem
#

PACKAGE_DIR = Path(chaindeploy.__file__).parent
PARAMS_DIR = PACKAGE_DIR / "params"
DEFAULT_PARAMS_FILEPATH = PARAMS_DIR / "vamp.yml"
DEFAULT_MANIFEST_DIR = Path(".")
MANIFEST_FILENAME_TEMPLATE = "deployment-{network}.json"

#
# Networks
#

LOCAL_NETWORK = "local"
LOCAL_ENDPOINT = "ethereum:local:test"

# one confirmation is enough for a deploy-time tool
REQUIRED_CONFIRMATIONS = 1

#
# Params file
#

VARIABLE_PREFIX = "$"
DEPLOYER_VARIABLE = "deployer"
CONTRACT_TYPE_KEY = "contract"
CONSTRUCTOR_KEY = "constructor"
MANIFEST_KEY = "manifest"

#
# Manifest
#

STANDARD_MANIFEST_JSON_FORMAT = {"indent": 4, "separators": (",", ": ")}
