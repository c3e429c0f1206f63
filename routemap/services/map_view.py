import json
from html import escape
from typing import List, Optional

from pydantic import BaseModel

from routemap.schemas.geo import Coordinate, LatLon, RouteResult
from routemap.schemas.search import SearchState

LEAFLET_VERSION = "1.9.4"
BASE_TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
SATELLITE_TILE_URL = "https://{s}.google.com/vt/lyrs=s&x={x}&y={y}&z={z}"
SATELLITE_SUBDOMAINS = ["mt0", "mt1", "mt2", "mt3"]
INITIAL_ICON_URL = "https://cdnjs.cloudflare.com/ajax/libs/leaflet/1.7.1/images/marker-icon.png"
DESTINATION_ICON_URL = "https://raw.githubusercontent.com/pointhi/leaflet-color-markers/master/img/marker-icon-red.png"
MARKER_SHADOW_URL = "https://cdnjs.cloudflare.com/ajax/libs/leaflet/0.7.7/images/marker-shadow.png"
FIT_PADDING = [50, 50]
DEFAULT_ZOOM = 5


class MapView(BaseModel):
    """The part of the search state the map needs to draw itself."""
    initial_coords: Optional[Coordinate] = None
    destination_coords: Optional[Coordinate] = None
    route: RouteResult = RouteResult()
    initial_label: str = ""
    destination_label: str = ""

    @classmethod
    def from_state(cls, state: SearchState) -> "MapView":
        return cls(
            initial_coords=state.initial_coords,
            destination_coords=state.destination_coords,
            route=state.route,
            initial_label=state.initial_query,
            destination_label=state.destination_query,
        )

    @property
    def bounds(self) -> Optional[List[LatLon]]:
        if self.initial_coords is None or self.destination_coords is None:
            return None
        return [self.initial_coords.as_pair(), self.destination_coords.as_pair()]


def _js(value) -> str:
    # safe to embed inside a <script> block
    return json.dumps(value).replace("</", "<\\/")


def render_map_script(view: MapView) -> str:
    """Leaflet script drawing tile layers, markers, route polyline and viewport for ``view``."""
    center = view.initial_coords.as_pair() if view.initial_coords else (0.0, 0.0)
    markers = []
    if view.initial_coords is not None:
        markers.append({"position": view.initial_coords.as_pair(), "label": "\U0001F4CD " + view.initial_label, "icon": "initial"})
    if view.destination_coords is not None:
        markers.append({"position": view.destination_coords.as_pair(), "label": "\U0001F4CD " + view.destination_label, "icon": "destination"})

    return f"""
  const map = L.map('map').setView({_js(center)}, {DEFAULT_ZOOM});
  const defaultLayer = L.tileLayer({_js(BASE_TILE_URL)}, {{
    maxZoom: 19,
    attribution: '&copy; OpenStreetMap contributors'
  }}).addTo(map);
  const satelliteLayer = L.tileLayer({_js(SATELLITE_TILE_URL)}, {{
    maxZoom: 20,
    subdomains: {_js(SATELLITE_SUBDOMAINS)}
  }});
  L.control.layers({{ "Default": defaultLayer, "Satellite": satelliteLayer }}, null, {{ position: 'topright' }}).addTo(map);

  const icons = {{
    initial: L.icon({{ iconUrl: {_js(INITIAL_ICON_URL)}, iconSize: [30, 45], iconAnchor: [15, 45] }}),
    destination: L.icon({{
      iconUrl: {_js(DESTINATION_ICON_URL)},
      shadowUrl: {_js(MARKER_SHADOW_URL)},
      iconSize: [30, 45],
      iconAnchor: [15, 45]
    }})
  }};
  const markers = {_js(markers)};
  markers.forEach(function (m) {{
    const popup = document.createElement('span');
    popup.textContent = m.label;
    L.marker(m.position, {{ icon: icons[m.icon] }}).addTo(map).bindPopup(popup);
  }});

  const route = {_js(view.route.path)};
  if (route.length > 0) {{
    L.polyline(route, {{ color: 'blue', weight: 6, dashArray: '10, 10', opacity: 0.8 }}).addTo(map);
  }}

  const bounds = {_js(view.bounds)};
  if (bounds) {{
    map.fitBounds(L.latLngBounds(bounds), {{ padding: {_js(FIT_PADDING)} }});
  }}
"""


def _coord_value(coordinate: Optional[Coordinate]) -> str:
    return escape(str(coordinate)) if coordinate is not None else ""


def _route_info(route: RouteResult) -> str:
    if route.distance_km is None or route.duration_min is None:
        return ""
    return f"""
<div class="route-info">
  <h3>Route Information</h3>
  <p>Distance: <strong>{route.distance_km:.2f} km</strong></p>
  <p>Estimated Time: <strong>{route.duration_min:.2f} minutes</strong></p>
</div>"""


def render_page(state: SearchState) -> str:
    """Full interactive page: search form, route panel, error banner and the map."""
    view = MapView.from_state(state)
    error = f'<div class="alert" role="alert">{escape(state.error)}</div>' if state.error else ""
    # the browser is asked for its location only on a fresh visit
    locate = "true" if state.routed_between is None and not state.initial_query else "false"

    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>Route Map</title>
  <link rel="stylesheet" href="https://unpkg.com/leaflet@{LEAFLET_VERSION}/dist/leaflet.css" crossorigin="" />
  <style>
    body {{ font-family: sans-serif; max-width: 72rem; margin: 0 auto; padding: 1rem; }}
    form {{ display: flex; gap: 0.75rem; margin-bottom: 1rem; flex-wrap: wrap; }}
    form input[type=text] {{ flex: 1; padding: 0.5rem; }}
    .alert {{ background: #fde2e1; color: #8a1c14; padding: 0.75rem; margin-bottom: 1rem; border-radius: 6px; }}
    .route-info {{ text-align: center; padding: 0.75rem; margin-bottom: 0.75rem; box-shadow: 0 1px 4px #ccc; }}
    .route-info p {{ display: inline-block; margin: 0 1.25rem; }}
    #map {{ height: 600px; border-radius: 8px; }}
  </style>
</head>
<body>
<form method="get" action="/">
  <input type="text" name="from" value="{escape(state.initial_query)}" placeholder="Enter Source Location" />
  <button type="submit" name="action" value="swap">Swap</button>
  <input type="text" name="to" value="{escape(state.destination_query)}" placeholder="Enter Destination Location" />
  <input type="hidden" name="src" value="{_coord_value(state.initial_coords)}" />
  <input type="hidden" name="dst" value="{_coord_value(state.destination_coords)}" />
  <button type="submit" name="action" value="search">Search</button>
</form>
{error}{_route_info(state.route)}
<div id="map"></div>
<script src="https://unpkg.com/leaflet@{LEAFLET_VERSION}/dist/leaflet.js" crossorigin=""></script>
<script>
{render_map_script(view)}
  if ({locate} && navigator.geolocation && !sessionStorage.getItem('routemap.located')) {{
    sessionStorage.setItem('routemap.located', '1');
    navigator.geolocation.getCurrentPosition(function (position) {{
      const params = new URLSearchParams(window.location.search);
      params.set('here', position.coords.latitude + ',' + position.coords.longitude);
      window.location.search = params.toString();
    }}, function (error) {{
      fetch('/api/device-location', {{
        method: 'POST',
        headers: {{ 'Content-Type': 'application/json' }},
        body: JSON.stringify({{ error: error.message }})
      }});
    }});
  }}
</script>
</body>
</html>
"""
