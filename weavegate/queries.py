"""GraphQL documents for the gateway's /graphql endpoint."""

_TRANSACTION_FIELDS = """
    id
    anchor
    signature
    recipient
    owner { address key }
    fee { winston ar }
    quantity { winston ar }
    data { size type }
    tags { name value }
    block { id timestamp height previous }
"""

TRANSACTIONS = """
query Transactions($first: Int, $after: String, $tags: [TagFilter!], $owners: [String!],
                   $recipients: [String!], $block: BlockFilter, $sort: SortOrder) {
  transactions(first: $first, after: $after, tags: $tags, owners: $owners,
               recipients: $recipients, block: $block, sort: $sort) {
    pageInfo { hasNextPage }
    edges {
      cursor
      node {
        %s
        parent { id }
        bundledIn { id }
      }
    }
  }
}
""" % _TRANSACTION_FIELDS

BLOCKS = """
query Blocks($first: Int, $after: String, $height: BlockFilter, $sort: SortOrder) {
  blocks(first: $first, after: $after, height: $height, sort: $sort) {
    pageInfo { hasNextPage }
    edges {
      cursor
      node { id timestamp height previous }
    }
  }
}
"""

TRANSACTION_BY_ID = """
query Transaction($id: ID!) {
  transaction(id: $id) {
    %s
  }
}
""" % _TRANSACTION_FIELDS
