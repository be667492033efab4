"""
Map Visualization Module for MangroveWatch

Generates interactive maps using Folium to display community incident
reports, coloured by triage status.
"""

import html
import logging
from typing import Optional

import folium
from folium.plugins import MarkerCluster

from src.core.constants import STATUS_COLORS
from src.crowdsource.query import confidence_band
from src.crowdsource.scoring import parse_coordinate

logger = logging.getLogger(__name__)


def get_status_color(status: str) -> str:
    """Get marker color based on report status."""
    return STATUS_COLORS.get(status, "gray")


def get_confidence_radius(confidence: int) -> int:
    """Calculate marker radius based on AI confidence."""
    band = confidence_band(confidence)
    if band == "ok":
        return 12
    elif band == "warn":
        return 9
    return 6


def locate_reports(reports: list) -> list:
    """Reports with parseable coordinates, paired with (lat, lon)."""
    located = []
    for report in reports:
        lat = parse_coordinate(report.latitude)
        lon = parse_coordinate(report.longitude)
        if lat is not None and lon is not None:
            located.append((report, lat, lon))
    return located


def create_reports_map(
    reports: list,
    center: Optional[tuple[float, float]] = None,
    zoom: int = 6,
    title: str = "MangroveWatch - Community Reports",
    cluster_markers: bool = True,
) -> folium.Map:
    """
    Create an interactive map with incident reports.

    Reports without usable coordinates are left off the map.

    Args:
        reports: List of Report objects
        center: Map center (lat, lon). Auto-calculated if None.
        zoom: Initial zoom level (1-18)
        title: Map title
        cluster_markers: Cluster markers when zoomed out

    Returns:
        Folium Map object
    """
    located = locate_reports(reports)

    if not located:
        logger.warning("No located reports provided, creating empty map")
        center = center or (0, 0)
        return folium.Map(location=center, zoom_start=2)

    # Calculate center from reports if not provided
    if center is None:
        lats = [lat for _, lat, _ in located]
        lons = [lon for _, _, lon in located]
        center = (sum(lats) / len(lats), sum(lons) / len(lons))

    report_map = folium.Map(
        location=center,
        zoom_start=zoom,
        tiles=None,
    )

    folium.TileLayer(
        tiles="OpenStreetMap",
        name="Street",
    ).add_to(report_map)

    folium.TileLayer(
        tiles="https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
        name="Satellite",
        attr="Esri",
    ).add_to(report_map)

    if cluster_markers:
        marker_group = MarkerCluster(name="Reports")
    else:
        marker_group = folium.FeatureGroup(name="Reports")

    for report, lat, lon in located:
        color = get_status_color(report.status.value)
        flags = "<br>".join(html.escape(f) for f in report.ai_flags) or "None"

        popup_html = f"""
        <div style="font-family: Arial; min-width: 200px;">
            <h4 style="margin: 0; color: {color};">{html.escape(report.category)}</h4>
            <hr style="margin: 5px 0;">
            <b>Reporter:</b> {html.escape(report.reporter_name)}<br>
            <b>Location:</b> {lat:.5f}, {lon:.5f}<br>
            <b>Confidence:</b> {report.ai_confidence}%<br>
            <b>Status:</b> {report.status.value}<br>
            <b>Time:</b> {report.submitted_at.strftime("%Y-%m-%d %H:%M")} UTC<br>
            <b>Flags:</b> {flags}
        </div>
        """

        folium.CircleMarker(
            location=[lat, lon],
            radius=get_confidence_radius(report.ai_confidence),
            popup=folium.Popup(popup_html, max_width=300),
            color=color,
            fill=True,
            fill_color=color,
            fill_opacity=0.7,
            weight=2,
        ).add_to(marker_group)

    marker_group.add_to(report_map)

    folium.LayerControl(position="topright").add_to(report_map)

    title_html = f'''
    <div style="position: fixed;
                top: 10px; left: 50px;
                background-color: rgba(0,0,0,0.8);
                padding: 10px 20px;
                border-radius: 5px;
                z-index: 9999;
                font-family: Arial;">
        <h3 style="margin: 0; color: white;">{html.escape(title)}</h3>
        <p style="margin: 5px 0 0 0; color: #ccc; font-size: 12px;">
            {len(located)} located reports
        </p>
    </div>
    '''
    report_map.get_root().html.add_child(folium.Element(title_html))

    legend_html = '''
    <div style="position: fixed;
                bottom: 30px; right: 30px;
                background-color: rgba(0,0,0,0.8);
                padding: 10px;
                border-radius: 5px;
                z-index: 9999;
                font-family: Arial;
                font-size: 12px;
                color: white;">
        <b>Status</b><br>
        <span style="color: green;">●</span> Validated<br>
        <span style="color: orange;">●</span> Submitted<br>
        <span style="color: red;">●</span> Flagged<br>
        <hr style="margin: 5px 0; border-color: #555;">
        <b>Marker Size</b> = AI confidence
    </div>
    '''
    report_map.get_root().html.add_child(folium.Element(legend_html))

    logger.info(f"Created map with {len(located)} reports")
    return report_map
