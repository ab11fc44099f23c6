from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class GraphQLDocument:
    """A named query or mutation, built once and reused for every call."""

    name: str
    source: str


CREATE_ISSUE = GraphQLDocument(
    "CreateIssue",
    """
    mutation CreateIssue($input: IssueCreateInput!) {
      issueCreate(input: $input) {
        success
        issue {
          id
          identifier
          title
          url
          team { id name }
          project { id name }
        }
      }
    }
    """,
)

CREATE_BATCH_ISSUES = GraphQLDocument(
    "CreateBatchIssues",
    """
    mutation CreateBatchIssues($input: IssueBatchCreateInput!) {
      issueBatchCreate(input: $input) {
        success
        issues {
          id
          identifier
          title
          url
        }
        lastSyncId
      }
    }
    """,
)

CREATE_PROJECT = GraphQLDocument(
    "CreateProject",
    """
    mutation CreateProject($input: ProjectCreateInput!) {
      projectCreate(input: $input) {
        success
        project {
          id
          name
          url
        }
        lastSyncId
      }
    }
    """,
)

UPDATE_ISSUE = GraphQLDocument(
    "UpdateIssue",
    """
    mutation UpdateIssue($id: String!, $input: IssueUpdateInput!) {
      issueUpdate(id: $id, input: $input) {
        success
        issue {
          id
          identifier
          title
          url
          description
          state { name }
        }
      }
    }
    """,
)

DELETE_ISSUE = GraphQLDocument(
    "DeleteIssue",
    """
    mutation DeleteIssue($id: String!) {
      issueDelete(id: $id) {
        success
      }
    }
    """,
)

CREATE_ISSUE_LABELS = GraphQLDocument(
    "CreateIssueLabels",
    """
    mutation CreateIssueLabels($labels: [IssueLabelCreateInput!]!) {
      issueLabelCreate(input: $labels) {
        success
        issueLabels {
          id
          name
          color
        }
      }
    }
    """,
)

FILE_UPLOAD = GraphQLDocument(
    "FileUpload",
    """
    mutation FileUpload($contentType: String!, $filename: String!, $size: Int!) {
      fileUpload(contentType: $contentType, filename: $filename, size: $size) {
        success
        uploadFile {
          uploadUrl
          assetUrl
          headers { key value }
        }
      }
    }
    """,
)

SEARCH_ISSUES = GraphQLDocument(
    "SearchIssues",
    """
    query SearchIssues($filter: IssueFilter, $first: Int, $after: String, $orderBy: PaginationOrderBy) {
      issues(filter: $filter, first: $first, after: $after, orderBy: $orderBy) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          id
          identifier
          title
          description
          url
          priority
          state { id name type }
          assignee { id name email }
          team { id name key }
          project { id name }
          labels { nodes { id name color } }
          createdAt
          updatedAt
        }
      }
    }
    """,
)

GET_ISSUE = GraphQLDocument(
    "GetIssue",
    """
    query GetIssue($id: String!) {
      issue(id: $id) {
        id
        description
      }
    }
    """,
)

GET_TEAMS = GraphQLDocument(
    "GetTeams",
    """
    query GetTeams {
      teams {
        nodes {
          id
          name
          key
          description
          states {
            nodes { id name type color }
          }
          labels {
            nodes { id name color }
          }
        }
      }
    }
    """,
)

GET_VIEWER = GraphQLDocument(
    "GetViewer",
    """
    query GetViewer {
      viewer {
        id
        name
        email
        displayName
        active
        admin
        teams {
          nodes { id name key }
        }
      }
    }
    """,
)

GET_PROJECT = GraphQLDocument(
    "GetProject",
    """
    query GetProject($id: String!) {
      project(id: $id) {
        id
        name
        description
        url
        state
        teams {
          nodes { id name key }
        }
        issues {
          nodes { id identifier title url state { name } }
        }
      }
    }
    """,
)

SEARCH_PROJECTS = GraphQLDocument(
    "SearchProjects",
    """
    query SearchProjects($filter: ProjectFilter) {
      projects(filter: $filter) {
        nodes {
          id
          name
          description
          url
          state
          teams {
            nodes { id name key }
          }
        }
      }
    }
    """,
)
