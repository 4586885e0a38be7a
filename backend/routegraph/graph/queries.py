"""Cypher statements issued by the Neo4j graph store adapter.

Stations are (:Station {name}) nodes; each route edge is a
[:ROUTE_SEGMENT {RouteId, StartTime, EndTime, Status}] relationship directed
along the travel order. Every statement is parameterised.
"""

# ==================== Schema ====================

CREATE_STATION_NAME_CONSTRAINT = """
CREATE CONSTRAINT station_name_unique IF NOT EXISTS
FOR (s:Station) REQUIRE s.name IS UNIQUE
"""

CREATE_SEGMENT_ROUTE_ID_INDEX = """
CREATE INDEX route_segment_route_id IF NOT EXISTS
FOR ()-[r:ROUTE_SEGMENT]-() ON (r.RouteId)
"""

SCHEMA_STATEMENTS = (CREATE_STATION_NAME_CONSTRAINT, CREATE_SEGMENT_ROUTE_ID_INDEX)

# ==================== Writes ====================

MERGE_STATION = """
MERGE (s:Station {name: $name})
RETURN s.name AS name
"""

CREATE_SEGMENT = """
MATCH (a:Station {name: $origin})
MATCH (b:Station {name: $destination})
CREATE (a)-[r:ROUTE_SEGMENT]->(b)
SET r = $properties
RETURN count(r) AS created
"""

DELETE_SEGMENTS = """
MATCH (:Station)-[r:ROUTE_SEGMENT {RouteId: $route_id}]->(:Station)
WITH collect(r) AS rels
FOREACH (r IN rels | DELETE r)
RETURN size(rels) AS deleted
"""

SET_SEGMENT_PROPERTIES = """
MATCH (:Station)-[r:ROUTE_SEGMENT {RouteId: $route_id}]->(:Station)
SET r += $properties
RETURN count(r) AS updated
"""

# ==================== Reads ====================

_SEGMENT_PROJECTION = """
RETURN r.RouteId AS route_id,
       a.name AS origin,
       b.name AS destination,
       r.StartTime AS start_time,
       r.EndTime AS end_time,
       r.Status AS status
"""

FIND_SEGMENTS = (
    """
MATCH (a:Station)-[r:ROUTE_SEGMENT {RouteId: $route_id}]->(b:Station)
"""
    + _SEGMENT_PROJECTION
)

FIND_ALL_SEGMENTS = (
    """
MATCH (a:Station)-[r:ROUTE_SEGMENT]->(b:Station)
WHERE r.RouteId IS NOT NULL
"""
    + _SEGMENT_PROJECTION
    + "ORDER BY route_id\n"
)
