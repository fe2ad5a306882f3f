from __future__ import annotations

from overlay_sentinel.core.metadata import BoundingBox, Viewport
from overlay_sentinel.core.synthetic import SyntheticNode, SyntheticTree

DEMO_DELAYS_MS = (500, 1000, 1500)

DEMO_OVERLAYS_SCRIPT = r"""
const delays = arguments[0];

setTimeout(() => {
  const chatIcon = document.createElement("div");
  chatIcon.className = "simulated-floating";
  chatIcon.textContent = "\u{1F4AC}";
  chatIcon.setAttribute("data-simulated", "true");
  chatIcon.style.cssText = "position: fixed; bottom: 20px; right: 20px; width: 60px; height: 60px; border-radius: 50%; z-index: 9998;";
  document.body.appendChild(chatIcon);
}, delays[0]);

setTimeout(() => {
  const sidebar = document.createElement("div");
  sidebar.className = "simulated-sidebar";
  sidebar.setAttribute("data-simulated", "true");
  sidebar.style.cssText = "position: fixed; top: 0; right: -300px; width: 300px; height: 100vh; z-index: 9999;";
  sidebar.innerHTML = `
    <button class="close-btn">x</button>
    <h3>Simulated Sidebar</h3>
    <ul><li>Customer Support</li><li>Live Chat</li><li>Help Center</li><li>Contact Us</li></ul>
  `;
  document.body.appendChild(sidebar);
}, delays[1]);

setTimeout(() => {
  const banner = document.createElement("div");
  banner.setAttribute("data-simulated", "true");
  banner.style.cssText = "position: fixed; top: 0; left: 0; right: 0; padding: 1rem; z-index: 9997;";
  banner.innerHTML = 'Simulated notification banner <button type="button">Dismiss</button>';
  document.body.appendChild(banner);
}, delays[2]);
"""


def build_demo_overlays(viewport: Viewport | None = None) -> list[SyntheticNode]:
    """The floating action button, side panel and top banner used for demos."""

    viewport = viewport or Viewport()
    chat_icon = SyntheticNode(
        "div",
        classes="simulated-floating",
        attributes={"data-simulated": "true"},
        style={"position": "fixed", "z-index": 9998},
        box=BoundingBox(top=viewport.height - 80, left=viewport.width - 80, width=60, height=60),
    )
    sidebar = SyntheticNode(
        "div",
        classes="simulated-sidebar",
        attributes={"data-simulated": "true"},
        style={"position": "fixed", "z-index": 9999},
        box=BoundingBox(top=0, left=viewport.width - 40, width=300, height=viewport.height),
        children=[
            SyntheticNode("button", classes="close-btn"),
            SyntheticNode("h3"),
            SyntheticNode("ul", children=[SyntheticNode("li") for _ in range(4)]),
        ],
    )
    banner = SyntheticNode(
        "div",
        attributes={"data-simulated": "true"},
        style={"position": "fixed", "z-index": 9997},
        box=BoundingBox(top=0, left=0, width=viewport.width, height=56),
        children=[SyntheticNode("button", attributes={"type": "button"})],
    )
    return [chat_icon, sidebar, banner]


def inject_demo_overlays(tree: SyntheticTree) -> list[SyntheticNode]:
    nodes = build_demo_overlays(tree.viewport)
    for node in nodes:
        tree.body.append(node)
    return nodes


def schedule_browser_demo(driver, delays_ms: tuple[int, int, int] = DEMO_DELAYS_MS) -> None:
    """Asks the page to insert the three demo overlays at staggered delays."""

    driver.execute_script(DEMO_OVERLAYS_SCRIPT, list(delays_ms))
