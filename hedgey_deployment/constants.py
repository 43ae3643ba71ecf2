from pathlib import Path

import hedgey_deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(hedgey_deployment.__file__).parent
ARTIFACTS_DIR = DEPLOYMENT_DIR / "artifacts"

#
# Networks
#

LOCAL_NETWORKS = ["local", "test"]

#
# Contracts
#

BATCH_PLANNER = "BatchPlanner"
CLAIM_CAMPAIGNS = "ClaimCampaigns"

# metadata setter exposed by every plans NFT
UPDATE_BASE_URI_METHOD = "updateBaseURI"

#
# Verification
#

# seconds to wait after deployment before submitting to the explorer
DEFAULT_SETTLE_DELAY = 10
