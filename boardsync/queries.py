"""GraphQL documents for single operations.

Every list query takes an ``$cursor`` variable and selects ``pageInfo`` so it
can be driven by the paginator. Batch mutations are compiled separately in
boardsync.batch because their shape depends on the number of updates.
"""

PAGE_SIZE = 100
FIELD_VALUES_PAGE_SIZE = 20

PAGE_INFO = "pageInfo { hasNextPage endCursor }"

ISSUE_FIELDS = """
    id
    number
    title
    body
    state
    url
    repository { name owner { login } }
    author { login }
    assignees(first: 10) { nodes { login } }
    labels(first: 20) { nodes { name color } }
    milestone { title }
"""

SUB_ISSUE_FIELDS = """
    id
    number
    title
    state
    url
    repository { name owner { login } }
"""

FIELD_VALUE_NODES = """
    nodes {
        __typename
        ... on ProjectV2ItemFieldTextValue {
            text
            field { ... on ProjectV2FieldCommon { name } }
        }
        ... on ProjectV2ItemFieldNumberValue {
            number
            field { ... on ProjectV2FieldCommon { name } }
        }
        ... on ProjectV2ItemFieldDateValue {
            date
            field { ... on ProjectV2FieldCommon { name } }
        }
        ... on ProjectV2ItemFieldSingleSelectValue {
            name
            field { ... on ProjectV2FieldCommon { name } }
        }
        ... on ProjectV2ItemFieldIterationValue {
            title
            field { ... on ProjectV2FieldCommon { name } }
        }
    }
"""

PROJECT_FIELDS = "id number title url closed"

# Owner lookups: users and organizations live under disjoint roots
GET_USER_PROJECT = f"""
query GetUserProject($login: String!, $number: Int!) {{
    user(login: $login) {{
        projectV2(number: $number) {{ {PROJECT_FIELDS} }}
    }}
}}
"""

GET_ORG_PROJECT = f"""
query GetOrgProject($login: String!, $number: Int!) {{
    organization(login: $login) {{
        projectV2(number: $number) {{ {PROJECT_FIELDS} }}
    }}
}}
"""

LIST_USER_PROJECTS = f"""
query ListUserProjects($login: String!, $cursor: String) {{
    user(login: $login) {{
        projectsV2(first: {PAGE_SIZE}, after: $cursor) {{
            nodes {{ {PROJECT_FIELDS} }}
            {PAGE_INFO}
        }}
    }}
}}
"""

LIST_ORG_PROJECTS = f"""
query ListOrgProjects($login: String!, $cursor: String) {{
    organization(login: $login) {{
        projectsV2(first: {PAGE_SIZE}, after: $cursor) {{
            nodes {{ {PROJECT_FIELDS} }}
            {PAGE_INFO}
        }}
    }}
}}
"""

GET_PROJECT_FIELDS = f"""
query GetProjectFields($projectId: ID!, $cursor: String) {{
    node(id: $projectId) {{
        ... on ProjectV2 {{
            fields(first: {PAGE_SIZE}, after: $cursor) {{
                nodes {{
                    ... on ProjectV2Field {{ id name dataType }}
                    ... on ProjectV2IterationField {{ id name dataType }}
                    ... on ProjectV2SingleSelectField {{
                        id
                        name
                        dataType
                        options {{ id name color }}
                    }}
                }}
                {PAGE_INFO}
            }}
        }}
    }}
}}
"""

GET_PROJECT_ITEMS = f"""
query GetProjectItems($projectId: ID!, $cursor: String) {{
    node(id: $projectId) {{
        ... on ProjectV2 {{
            items(first: {PAGE_SIZE}, after: $cursor) {{
                nodes {{
                    id
                    content {{
                        __typename
                        ... on Issue {{ {ISSUE_FIELDS} }}
                    }}
                    fieldValues(first: {FIELD_VALUES_PAGE_SIZE}) {{ {FIELD_VALUE_NODES} }}
                }}
                {PAGE_INFO}
            }}
        }}
    }}
}}
"""

GET_PROJECT_ITEM_IDS = f"""
query GetProjectItemIds($projectId: ID!, $cursor: String) {{
    node(id: $projectId) {{
        ... on ProjectV2 {{
            items(first: {PAGE_SIZE}, after: $cursor) {{
                nodes {{
                    id
                    content {{ __typename ... on Issue {{ id }} }}
                }}
                {PAGE_INFO}
            }}
        }}
    }}
}}
"""

GET_PROJECT_ITEM_FIELD_VALUES = f"""
query GetProjectItemFieldValues($itemId: ID!) {{
    node(id: $itemId) {{
        ... on ProjectV2Item {{
            fieldValues(first: 50) {{ {FIELD_VALUE_NODES} }}
        }}
    }}
}}
"""

GET_ISSUE = f"""
query GetIssue($owner: String!, $repo: String!, $number: Int!) {{
    repository(owner: $owner, name: $repo) {{
        issue(number: $number) {{ {ISSUE_FIELDS} }}
    }}
}}
"""

GET_REPOSITORY_ISSUES = f"""
query GetRepositoryIssues(
    $owner: String!, $repo: String!, $states: [IssueState!], $cursor: String
) {{
    repository(owner: $owner, name: $repo) {{
        issues(first: {PAGE_SIZE}, after: $cursor, states: $states) {{
            nodes {{ {ISSUE_FIELDS} }}
            {PAGE_INFO}
        }}
    }}
}}
"""

GET_ISSUES_BY_LABEL = f"""
query GetIssuesByLabel(
    $owner: String!, $repo: String!, $labels: [String!], $states: [IssueState!], $cursor: String
) {{
    repository(owner: $owner, name: $repo) {{
        issues(first: {PAGE_SIZE}, after: $cursor, labels: $labels, states: $states) {{
            nodes {{ {ISSUE_FIELDS} }}
            {PAGE_INFO}
        }}
    }}
}}
"""

SEARCH_ISSUES = f"""
query SearchIssues($query: String!, $cursor: String) {{
    search(query: $query, type: ISSUE, first: {PAGE_SIZE}, after: $cursor) {{
        nodes {{
            __typename
            ... on Issue {{ {ISSUE_FIELDS} }}
        }}
        {PAGE_INFO}
    }}
}}
"""

GET_SUB_ISSUES = f"""
query GetSubIssues($owner: String!, $repo: String!, $number: Int!, $cursor: String) {{
    repository(owner: $owner, name: $repo) {{
        issue(number: $number) {{
            id
            subIssues(first: {PAGE_SIZE}, after: $cursor) {{
                nodes {{ {SUB_ISSUE_FIELDS} }}
                {PAGE_INFO}
            }}
        }}
    }}
}}
"""

GET_PARENT_ISSUE = f"""
query GetParentIssue($owner: String!, $repo: String!, $number: Int!) {{
    repository(owner: $owner, name: $repo) {{
        issue(number: $number) {{
            parent {{ {SUB_ISSUE_FIELDS} }}
        }}
    }}
}}
"""

ADD_PROJECT_ITEM = """
mutation AddProjectV2ItemById($input: AddProjectV2ItemByIdInput!) {
    addProjectV2ItemById(input: $input) { item { id } }
}
"""

UPDATE_PROJECT_ITEM_FIELD = """
mutation UpdateProjectV2ItemFieldValue($input: UpdateProjectV2ItemFieldValueInput!) {
    updateProjectV2ItemFieldValue(input: $input) { projectV2Item { id } }
}
"""

CLEAR_PROJECT_ITEM_FIELD = """
mutation ClearProjectV2ItemFieldValue($input: ClearProjectV2ItemFieldValueInput!) {
    clearProjectV2ItemFieldValue(input: $input) { projectV2Item { id } }
}
"""

ADD_SUB_ISSUE = """
mutation AddSubIssue($input: AddSubIssueInput!) {
    addSubIssue(input: $input) { issue { id } subIssue { id } }
}
"""

REMOVE_SUB_ISSUE = """
mutation RemoveSubIssue($input: RemoveSubIssueInput!) {
    removeSubIssue(input: $input) { issue { id } subIssue { id } }
}
"""

CLOSE_ISSUE = """
mutation CloseIssue($input: CloseIssueInput!) {
    closeIssue(input: $input) { issue { id state } }
}
"""

REOPEN_ISSUE = """
mutation ReopenIssue($input: ReopenIssueInput!) {
    reopenIssue(input: $input) { issue { id state } }
}
"""

UPDATE_ISSUE = """
mutation UpdateIssue($input: UpdateIssueInput!) {
    updateIssue(input: $input) { issue { id } }
}
"""

ADD_COMMENT = """
mutation AddComment($input: AddCommentInput!) {
    addComment(input: $input) { commentEdge { node { id body url } } }
}
"""
