"""
Server-side mind map rendering for export.

This module renders a mind map either as a Markdown outline that follows
parent links, or as a PNG image that mirrors the browser canvas: nodes are
boxes centered on their position, connections are straight lines between
node centers.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2025-12-17
"""

import io
from typing import Any, Dict, List, Tuple

from PIL import Image, ImageDraw, ImageFont

from .config import MAX_CANVAS_SIZE
from .nodes import children_of, find_node, roots

# Constants matching client-side node styling
NODE_WIDTH = 120
NODE_HEIGHT = 60
CANVAS_PADDING = 80
MAX_LABEL_CHARS = 18
BACKGROUND = (255, 255, 255, 255)
LINE_COLOR = (100, 116, 139, 255)


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Convert hex color string to RGB tuple.

    Args:
        hex_color: Hex color string (e.g., "#3B82F6" or "#fff").

    Returns:
        RGB tuple (r, g, b).
    """
    hex_color = hex_color.lstrip("#")
    if len(hex_color) == 3:
        hex_color = "".join(c * 2 for c in hex_color)
    return tuple(int(hex_color[i:i + 2], 16) for i in (0, 2, 4))


def text_color_for(rgb: Tuple[int, int, int]) -> Tuple[int, int, int, int]:
    """Pick black or white text for readability on the given fill."""
    r, g, b = rgb
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return (17, 24, 39, 255) if luminance > 150 else (255, 255, 255, 255)


def _label(content: str) -> str:
    content = content or "New Node"
    if len(content) > MAX_LABEL_CHARS:
        return content[:MAX_LABEL_CHARS - 3] + "..."
    return content


def render_markdown(mindmap: Dict[str, Any]) -> str:
    """Render a mind map as an indented Markdown outline.

    Args:
        mindmap: Mind map dictionary in wire format.

    Returns:
        Markdown text.
    """
    nodes = mindmap.get("nodes") or []
    lines = [f"# {mindmap.get('title', '')}"]

    description = mindmap.get("description")
    if description:
        lines += ["", description]

    tags = mindmap.get("tags") or []
    if tags:
        lines += ["", "Tags: " + ", ".join(tags)]

    if nodes:
        lines.append("")

    rendered = set()

    def walk(node: Dict[str, Any], depth: int):
        if node["id"] in rendered:
            return
        rendered.add(node["id"])
        indent = "  " * depth
        lines.append(f"{indent}- {node.get('content', '')}")
        for target_id in node.get("connections", []):
            target = find_node(nodes, target_id)
            if target is not None:
                lines.append(f"{indent}  - -> {target.get('content', '')}")
        for child in children_of(nodes, node["id"]):
            walk(child, depth + 1)

    for root in roots(nodes):
        walk(root, 0)

    # Nodes only reachable through a parent cycle
    for node in nodes:
        if node["id"] not in rendered:
            walk(node, 0)

    return "\n".join(lines) + "\n"


def render_map_to_image(mindmap: Dict[str, Any]) -> bytes:
    """Render the mind map to a PNG image that matches the client-side canvas.

    Node positions are scaled down when the map is wider or taller than
    MAX_CANVAS_SIZE; node boxes keep their size.

    Args:
        mindmap: Mind map dictionary in wire format.

    Returns:
        PNG image as bytes.
    """
    nodes: List[Dict[str, Any]] = mindmap.get("nodes") or []

    xs = [n["position"]["x"] for n in nodes] or [0]
    ys = [n["position"]["y"] for n in nodes] or [0]
    min_x, max_x = min(xs), max(xs)
    min_y, max_y = min(ys), max(ys)

    # Spread-out maps are scaled down so neither edge exceeds MAX_CANVAS_SIZE
    span_x = float(max_x - min_x)
    span_y = float(max_y - min_y)
    scale = 1.0
    if span_x > 0:
        scale = min(scale, (MAX_CANVAS_SIZE - NODE_WIDTH - CANVAS_PADDING * 2) / span_x)
    if span_y > 0:
        scale = min(scale, (MAX_CANVAS_SIZE - NODE_HEIGHT - CANVAS_PADDING * 2) / span_y)

    canvas_width = int(span_x * scale) + NODE_WIDTH + CANVAS_PADDING * 2
    canvas_height = int(span_y * scale) + NODE_HEIGHT + CANVAS_PADDING * 2

    img = Image.new("RGBA", (canvas_width, canvas_height), BACKGROUND)
    draw = ImageDraw.Draw(img)

    def transform_coords(x: float, y: float) -> Tuple[float, float]:
        return (
            (x - min_x) * scale + CANVAS_PADDING + NODE_WIDTH / 2,
            (y - min_y) * scale + CANVAS_PADDING + NODE_HEIGHT / 2,
        )

    # Load a simple font (fall back to default if not available)
    try:
        font = ImageFont.truetype("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", 12)
    except OSError:
        font = ImageFont.load_default()

    # Connections first so nodes are drawn on top
    for node in nodes:
        for target_id in node.get("connections", []):
            target = find_node(nodes, target_id)
            if target is None:
                continue
            x1, y1 = transform_coords(node["position"]["x"], node["position"]["y"])
            x2, y2 = transform_coords(target["position"]["x"], target["position"]["y"])
            draw.line([(x1, y1), (x2, y2)], fill=LINE_COLOR, width=2)

    for node in nodes:
        cx, cy = transform_coords(node["position"]["x"], node["position"]["y"])
        fill = hex_to_rgb(node.get("color") or "#ffffff")
        box = [
            cx - NODE_WIDTH / 2,
            cy - NODE_HEIGHT / 2,
            cx + NODE_WIDTH / 2,
            cy + NODE_HEIGHT / 2,
        ]
        draw.rounded_rectangle(box, radius=8, fill=fill + (255,), outline=LINE_COLOR, width=1)

        label = _label(node.get("content", ""))
        bbox = draw.textbbox((0, 0), label, font=font)
        text_width = bbox[2] - bbox[0]
        text_height = bbox[3] - bbox[1]
        draw.text(
            (cx - text_width / 2, cy - text_height / 2),
            label,
            font=font,
            fill=text_color_for(fill),
        )

    # Convert to PNG bytes
    img_bytes = io.BytesIO()
    img.save(img_bytes, format="PNG")
    img_bytes.seek(0)

    return img_bytes.getvalue()
