"""Typed request envelopes.

Each closed request type has an envelope subclass whose payload is a typed
model. Field names are snake_case in Python and camelCase on the wire.
Request types outside the closed set stay plain `Envelope`s.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from .errors import InvalidEnvelopeError
from .messages import Envelope, RequestType, decode_envelope


class RequestPayload(BaseModel):
    """Base for request payload models."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Shared payload shapes
# =============================================================================


class BranchPayload(RequestPayload):
    branch: str


class OptionalBranchPayload(RequestPayload):
    branch: str | None = None


class FilesPayload(RequestPayload):
    files: list[str]


class StashIndexPayload(RequestPayload):
    index: int = Field(ge=0)


class CommitShaPayload(RequestPayload):
    commit_sha: str


class BuildIdPayload(RequestPayload):
    build_id: int


# =============================================================================
# Per-request payloads
# =============================================================================


class GetLogPayload(RequestPayload):
    limit: int = Field(gt=0)
    branch: str | None = None


class CommitPayload(RequestPayload):
    message: str
    files: list[str]
    work_item_id: str | None = None


class AmendPayload(RequestPayload):
    message: str


class CreateBranchPayload(RequestPayload):
    name: str
    from_ref: str | None = Field(default=None, alias="from")


class DeleteBranchPayload(RequestPayload):
    name: str
    force: bool = False


class RebasePayload(RequestPayload):
    onto: str
    commits: list[str] | None = None


class CherryPickPayload(RequestPayload):
    commit: str


class StashCreatePayload(RequestPayload):
    message: str | None = None


class CreatePRPayload(RequestPayload):
    source: str
    target: str
    title: str


class WorkItemIdsPayload(RequestPayload):
    ids: list[int]


class LinkWorkItemPayload(RequestPayload):
    commit_sha: str
    work_item_id: int


class PolicyEvaluationsPayload(RequestPayload):
    pr_id: int


class TriggerRebuildPayload(RequestPayload):
    commit_sha: str
    definition_id: int


# =============================================================================
# Request envelopes
# =============================================================================


class RepoGetInfoRequest(Envelope):
    type: Literal["repo/getInfo"] = "repo/getInfo"


class RepoGetStatusRequest(Envelope):
    type: Literal["repo/getStatus"] = "repo/getStatus"


class GitGetLogRequest(Envelope):
    type: Literal["git/getLog"] = "git/getLog"
    payload: GetLogPayload


class GitCommitRequest(Envelope):
    type: Literal["git/commit"] = "git/commit"
    payload: CommitPayload


class GitAmendRequest(Envelope):
    type: Literal["git/amend"] = "git/amend"
    payload: AmendPayload


class GitGetBranchesRequest(Envelope):
    type: Literal["git/getBranches"] = "git/getBranches"


class GitCheckoutRequest(Envelope):
    type: Literal["git/checkout"] = "git/checkout"
    payload: BranchPayload


class GitCreateBranchRequest(Envelope):
    type: Literal["git/createBranch"] = "git/createBranch"
    payload: CreateBranchPayload


class GitDeleteBranchRequest(Envelope):
    type: Literal["git/deleteBranch"] = "git/deleteBranch"
    payload: DeleteBranchPayload


class GitMergeRequest(Envelope):
    type: Literal["git/merge"] = "git/merge"
    payload: BranchPayload


class GitRebaseRequest(Envelope):
    type: Literal["git/rebase"] = "git/rebase"
    payload: RebasePayload


class GitCherryPickRequest(Envelope):
    type: Literal["git/cherryPick"] = "git/cherryPick"
    payload: CherryPickPayload


class GitStageRequest(Envelope):
    type: Literal["git/stage"] = "git/stage"
    payload: FilesPayload


class GitUnstageRequest(Envelope):
    type: Literal["git/unstage"] = "git/unstage"
    payload: FilesPayload


class GitStashListRequest(Envelope):
    type: Literal["git/stashList"] = "git/stashList"


class GitStashCreateRequest(Envelope):
    type: Literal["git/stashCreate"] = "git/stashCreate"
    payload: StashCreatePayload | None = None


class GitStashApplyRequest(Envelope):
    type: Literal["git/stashApply"] = "git/stashApply"
    payload: StashIndexPayload


class GitStashDropRequest(Envelope):
    type: Literal["git/stashDrop"] = "git/stashDrop"
    payload: StashIndexPayload


class AzureGetPRsRequest(Envelope):
    type: Literal["azure/getPRs"] = "azure/getPRs"
    payload: OptionalBranchPayload | None = None


class AzureCreatePRRequest(Envelope):
    type: Literal["azure/createPR"] = "azure/createPR"
    payload: CreatePRPayload


class AzureGetWorkItemsRequest(Envelope):
    type: Literal["azure/getWorkItems"] = "azure/getWorkItems"
    payload: WorkItemIdsPayload


class AzureLinkWorkItemRequest(Envelope):
    type: Literal["azure/linkWorkItem"] = "azure/linkWorkItem"
    payload: LinkWorkItemPayload


class AzureGetPipelineStatusRequest(Envelope):
    type: Literal["azure/getPipelineStatus"] = "azure/getPipelineStatus"
    payload: BranchPayload


class AzureGetPolicyConfigurationsRequest(Envelope):
    type: Literal["azure/getPolicyConfigurations"] = "azure/getPolicyConfigurations"
    payload: BranchPayload


class AzureGetPolicyEvaluationsRequest(Envelope):
    type: Literal["azure/getPolicyEvaluations"] = "azure/getPolicyEvaluations"
    payload: PolicyEvaluationsPayload


class AzureGetBuildDetailsRequest(Envelope):
    type: Literal["azure/getBuildDetails"] = "azure/getBuildDetails"
    payload: CommitShaPayload


class AzureGetTestResultsRequest(Envelope):
    type: Literal["azure/getTestResults"] = "azure/getTestResults"
    payload: BuildIdPayload


class AzureGetCodeCoverageRequest(Envelope):
    type: Literal["azure/getCodeCoverage"] = "azure/getCodeCoverage"
    payload: BuildIdPayload


class AzureTriggerRebuildRequest(Envelope):
    type: Literal["azure/triggerRebuild"] = "azure/triggerRebuild"
    payload: TriggerRebuildPayload


class GitHubGetPRsRequest(Envelope):
    type: Literal["github/getPRs"] = "github/getPRs"
    payload: OptionalBranchPayload | None = None


REQUEST_MODELS: dict[str, type[Envelope]] = {
    RequestType.REPO_GET_INFO.value: RepoGetInfoRequest,
    RequestType.REPO_GET_STATUS.value: RepoGetStatusRequest,
    RequestType.GIT_GET_LOG.value: GitGetLogRequest,
    RequestType.GIT_COMMIT.value: GitCommitRequest,
    RequestType.GIT_AMEND.value: GitAmendRequest,
    RequestType.GIT_GET_BRANCHES.value: GitGetBranchesRequest,
    RequestType.GIT_CHECKOUT.value: GitCheckoutRequest,
    RequestType.GIT_CREATE_BRANCH.value: GitCreateBranchRequest,
    RequestType.GIT_DELETE_BRANCH.value: GitDeleteBranchRequest,
    RequestType.GIT_MERGE.value: GitMergeRequest,
    RequestType.GIT_REBASE.value: GitRebaseRequest,
    RequestType.GIT_CHERRY_PICK.value: GitCherryPickRequest,
    RequestType.GIT_STAGE.value: GitStageRequest,
    RequestType.GIT_UNSTAGE.value: GitUnstageRequest,
    RequestType.GIT_STASH_LIST.value: GitStashListRequest,
    RequestType.GIT_STASH_CREATE.value: GitStashCreateRequest,
    RequestType.GIT_STASH_APPLY.value: GitStashApplyRequest,
    RequestType.GIT_STASH_DROP.value: GitStashDropRequest,
    RequestType.AZURE_GET_PRS.value: AzureGetPRsRequest,
    RequestType.AZURE_CREATE_PR.value: AzureCreatePRRequest,
    RequestType.AZURE_GET_WORK_ITEMS.value: AzureGetWorkItemsRequest,
    RequestType.AZURE_LINK_WORK_ITEM.value: AzureLinkWorkItemRequest,
    RequestType.AZURE_GET_PIPELINE_STATUS.value: AzureGetPipelineStatusRequest,
    RequestType.AZURE_GET_POLICY_CONFIGURATIONS.value: AzureGetPolicyConfigurationsRequest,
    RequestType.AZURE_GET_POLICY_EVALUATIONS.value: AzureGetPolicyEvaluationsRequest,
    RequestType.AZURE_GET_BUILD_DETAILS.value: AzureGetBuildDetailsRequest,
    RequestType.AZURE_GET_TEST_RESULTS.value: AzureGetTestResultsRequest,
    RequestType.AZURE_GET_CODE_COVERAGE.value: AzureGetCodeCoverageRequest,
    RequestType.AZURE_TRIGGER_REBUILD.value: AzureTriggerRebuildRequest,
    RequestType.GITHUB_GET_PRS.value: GitHubGetPRsRequest,
}


def as_typed_request(envelope: Envelope) -> Envelope:
    """Re-validate an envelope against its typed request model, if any.

    Raises:
        InvalidEnvelopeError: If the payload does not match the request type
    """
    model = REQUEST_MODELS.get(envelope.type)
    if model is None or isinstance(envelope, model):
        return envelope
    try:
        return model.model_validate(envelope.to_wire())
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidEnvelopeError(
            f"Invalid payload for {envelope.type}: {errors}",
            request_type=envelope.type,
        ) from e


def decode_request(raw: Any) -> Envelope:
    """Validate a wire dict into its typed request envelope.

    Known request types decode to their typed subclass; any other type decodes
    to a plain `Envelope`.

    Raises:
        InvalidEnvelopeError: If the message is malformed or its payload does
            not match the request type
    """
    return as_typed_request(decode_envelope(raw))
