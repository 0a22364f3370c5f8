"""
Tile Grid
=========

The 3x3 tile selector shared by the player and admin pages.

The full image is always fetched; each tile shows one ninth of it by
rendering the image at 300% of the cell and offsetting it so that tile i's
region (row i // 3, column i % 3) fills the cell.

Admin mode reports the selection on every toggle (live binding into the
form draft; the admin pages replay the ticked checkboxes through toggle). Player mode only reports it when the user presses Verify.
"""

GRID_SIZE = 3
TILE_COUNT = GRID_SIZE * GRID_SIZE

ADMIN_HEADING = 'Select the tiles that contain:'
PLAYER_HEADING = 'Select all squares that contain:'


def tile_position(index):
    """Return (row, col) of a tile index."""
    if not 0 <= index < TILE_COUNT:
        raise ValueError(f"Tile index must be 0-{TILE_COUNT - 1}, got {index}")
    return divmod(index, GRID_SIZE)


def tile_style(index):
    """Inline CSS that crops the full image down to one tile."""
    row, col = tile_position(index)
    return (f"position: absolute; "
            f"width: {GRID_SIZE * 100}%; height: {GRID_SIZE * 100}%; "
            f"object-fit: cover; "
            f"left: {col * -100}%; top: {row * -100}%;")


def tiles_match(selected, correct):
    """Selection order is irrelevant, only set membership counts."""
    return set(selected) == set(correct)


class TileGrid:
    def __init__(self, image_url, target_description, admin_mode=False,
                 initial_selected=None, on_selection=None):
        self.image_url = image_url
        self.target_description = target_description
        self.admin_mode = admin_mode
        self.on_selection = on_selection
        self.selected = []
        for index in initial_selected or []:
            tile_position(index)
            if index not in self.selected:
                self.selected.append(index)

    @property
    def heading(self):
        return ADMIN_HEADING if self.admin_mode else PLAYER_HEADING

    def is_selected(self, index):
        return index in self.selected

    def toggle(self, index):
        """Add or remove a tile. In admin mode the new selection is reported immediately."""
        tile_position(index)
        if index in self.selected:
            self.selected.remove(index)
        else:
            self.selected.append(index)

        if self.admin_mode and self.on_selection:
            self.on_selection(list(self.selected))
        return list(self.selected)

    def verify(self):
        """Report the final selection (player mode only)."""
        if self.admin_mode:
            return None
        if self.on_selection:
            return self.on_selection(list(self.selected))
        return None

    def tiles(self):
        """Render model for the template, one dict per tile in index order."""
        tiles = []
        for index in range(TILE_COUNT):
            row, col = tile_position(index)
            tiles.append({
                'index': index,
                'row': row,
                'col': col,
                'selected': index in self.selected,
                'style': tile_style(index),
            })
        return tiles
