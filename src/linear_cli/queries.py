"""Static GraphQL queries used by the CLI."""

VIEWER = """
query viewer {
  viewer {
    id
    name
    email
    displayName
  }
}
"""

ISSUE_FIELDS = """
  id
  identifier
  title
  description
  priority
  priorityLabel
  createdAt
  updatedAt
  completedAt
  url
  state {
    name
    color
    type
  }
  assignee {
    id
    name
    email
  }
  team {
    id
    key
    name
  }
  project {
    id
    name
  }
  labels {
    nodes {
      id
      name
      color
    }
  }
"""

ISSUES = (
    """
query issues($filter: IssueFilter, $first: Int!, $after: String) {
  issues(filter: $filter, first: $first, after: $after) {
    nodes {"""
    + ISSUE_FIELDS
    + """    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""
)

ISSUE = (
    """
query issue($id: String!) {
  issue(id: $id) {"""
    + ISSUE_FIELDS
    + """    creator {
      id
      name
      email
    }
  }
}
"""
)

ISSUE_CREATE = """
mutation issueCreate($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue {
      id
      identifier
      title
      url
    }
  }
}
"""

ISSUE_UPDATE = """
mutation issueUpdate($id: String!, $input: IssueUpdateInput!) {
  issueUpdate(id: $id, input: $input) {
    success
    issue {
      id
      identifier
      title
      url
    }
  }
}
"""

TEAMS = """
query teams($first: Int!, $after: String) {
  teams(first: $first, after: $after) {
    nodes {
      id
      key
      name
      description
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

TEAM_BY_KEY = """
query teamByKey($key: String!) {
  teams(filter: { key: { eq: $key } }) {
    nodes {
      id
      key
      name
    }
  }
}
"""

PROJECTS = """
query projects($filter: ProjectFilter, $first: Int!, $after: String) {
  projects(filter: $filter, first: $first, after: $after) {
    nodes {
      id
      name
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

PROJECT = """
query project($id: String!) {
  project(id: $id) {
    id
    name
  }
}
"""

USERS_BY_EMAIL = """
query usersByEmail($email: String!) {
  users(filter: { email: { eq: $email } }) {
    nodes {
      id
      name
      email
    }
  }
}
"""
