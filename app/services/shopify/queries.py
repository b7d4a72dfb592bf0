"""GraphQL documents used by the customer and product services."""

GET_CUSTOMER_BY_ID = """
query getCustomer($id: ID!) {
  customer(id: $id) {
    id
    firstName
    lastName
    email
    createdAt
    updatedAt
  }
}
"""

PRODUCT_FIELDS = """
  id
  title
  handle
  status
  variants(first: 1) {
    edges {
      node {
        id
        price
        availableForSale
      }
    }
  }
  images(first: 1) {
    edges {
      node {
        id
        url
        altText
      }
    }
  }
"""

GET_PRODUCT_BY_ID = f"""
query getProduct($id: ID!) {{
  product(id: $id) {{
    description
    createdAt
    updatedAt
{PRODUCT_FIELDS}
  }}
}}
"""

GET_DEFAULT_PRODUCT = f"""
query getDefaultProduct {{
  products(first: 1, query: "status:active") {{
    edges {{
      node {{
{PRODUCT_FIELDS}
      }}
    }}
  }}
}}
"""
