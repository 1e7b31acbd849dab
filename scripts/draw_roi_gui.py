# scripts/draw_roi_gui.py
"""
Interactive GUI Tool to draw parking ROIs on a CCTV frame.
Left click: select an ROI (idle) or add a point (create / update).
Right click: complete the current polygon.
Edits go to a draft of the ROI file until "Save File" publishes it.
The top row picks the ROI file, test folder and test image from the ROI store.
"""

import os
import sys
import argparse
import logging
import tkinter as tk
from tkinter import messagebox, simpledialog, ttk

import cv2
from PIL import Image, ImageTk

sys.path.append(os.path.join(os.path.dirname(__file__), '..'))

from backend.config.roi_editor_config import roi_editor_config
from backend.models.roi import EditMode
from backend.services.polygon_editor import PolygonEditor
from backend.services.roi_work_session import RoiWorkSession
from storage.roi_store import LocalRoiStore, RoiStore
from storage.roi_store_client import RoiStoreClient

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class RoiDrawingApp:
    def __init__(self, root: tk.Tk, session: RoiWorkSession):
        self.root = root
        self.root.title("🅿️ Parking ROI Editor")
        self.session = session
        self.editor = session.editor
        self.display_photo = None

        pick_frame = tk.Frame(root)
        pick_frame.pack(pady=(10, 0))
        self.roi_file_box = self._picker(pick_frame, "ROI file:", 0, self.on_roi_file_selected)
        self.folder_box = self._picker(pick_frame, "Folder:", 2, self.on_folder_selected)
        self.image_box = self._picker(pick_frame, "Image:", 4, self.on_image_selected)
        self.load_listings()

        size = self.editor.canvas_size
        self.canvas = tk.Canvas(root, width=size, height=size, bg="gray", highlightthickness=0)
        self.canvas.pack(pady=10)

        btn_frame = tk.Frame(root)
        btn_frame.pack()

        buttons = [
            ("✏️ Start Edit", self.start_edit),
            ("➕ New ROI", self.new_roi),
            ("🔧 Update Selected", self.update_selected),
            ("✅ Complete", self.complete),
            ("↩️ Cancel", self.cancel),
            ("🗑️ Delete Selected", self.delete_selected),
            ("💾 Save File", self.save_file),
            ("⏹ End Edit", self.end_edit),
            ("📋 Draft Info", self.show_draft),
        ]
        for column, (text, command) in enumerate(buttons):
            tk.Button(btn_frame, text=text, command=command).grid(row=0, column=column, padx=3)

        self.status_label = tk.Label(root, text="Select an ROI or start editing.", fg="blue")
        self.status_label.pack(pady=5)

        self.canvas.bind("<Button-1>", self.on_mouse_click)  # Left click
        self.canvas.bind("<Button-3>", self.on_right_click)  # Right click (Windows/Linux)
        self.canvas.bind("<Button-2>", self.on_right_click)  # Right click (macOS)

        self.refresh()

    # -------------------- 选择 --------------------
    @staticmethod
    def _picker(parent, label, column, on_select):
        tk.Label(parent, text=label).grid(row=0, column=column, padx=(6, 2))
        box = ttk.Combobox(parent, state="readonly", width=24)
        box.grid(row=0, column=column + 1)
        box.bind("<<ComboboxSelected>>", lambda _event: on_select(box.get()))
        return box

    def load_listings(self):
        roi_files = self.session.roi_file_names()
        if self.session.roi_file and f"{self.session.roi_file}.json" not in roi_files:
            roi_files.append(f"{self.session.roi_file}.json")
        self.roi_file_box["values"] = roi_files
        if self.session.roi_file:
            self.roi_file_box.set(f"{self.session.roi_file}.json")
        self.folder_box["values"] = self.session.test_folder_names()

    def on_roi_file_selected(self, name):
        if self.session.draft_created and not messagebox.askyesno(
                "Switch File", "Unsaved draft edits stay in the draft. Switch anyway?"):
            self.roi_file_box.set(f"{self.session.roi_file}.json")
            return
        self.session.draft_created = False
        self.session.cancel_edit()
        self.session.select_roi_file(name)
        self.refresh()

    def on_folder_selected(self, folder):
        self.image_box["values"] = self.session.test_image_names(folder)
        self.image_box.set("")
        self.update_status()

    def on_image_selected(self, image_name):
        self.session.select_test_image(self.folder_box.get(), image_name)
        self.refresh()

    # -------------------- 绘制 --------------------
    def refresh(self):
        """Redraw the editor canvas and the status line."""
        frame = cv2.cvtColor(self.editor.render(), cv2.COLOR_BGR2RGB)
        self.display_photo = ImageTk.PhotoImage(image=Image.fromarray(frame))
        self.canvas.delete("all")
        self.canvas.create_image(0, 0, anchor=tk.NW, image=self.display_photo)
        self.canvas.config(cursor="crosshair" if self.editor.edit_mode != EditMode.IDLE else "hand2")
        self.update_status()

    def update_status(self):
        if self.session.last_error:
            self.status_label.config(text=f"❌ {self.session.last_error}", fg="red")
            return
        mode = self.editor.edit_mode
        if mode == EditMode.IDLE:
            selected = self.editor.selected_roi_id or "-"
            draft = "draft" if self.session.draft_created else "published"
            self.status_label.config(
                text=f"{len(self.session.rois)} ROIs ({draft}) | selected: {selected}", fg="blue")
            return
        points = len(self.editor.get_capture_buffer()) // 2
        ready = "ready to complete" if self.editor.can_complete() else "need ≥3 points"
        target = self.session.pending_roi_id or "?"
        self.status_label.config(text=f"✏️ {mode.value} '{target}': {points} points, {ready}",
                                 fg="darkgreen" if self.editor.can_complete() else "orange")

    # -------------------- 事件 --------------------
    def on_mouse_click(self, event):
        self.editor.handle_canvas_click(event.x, event.y)
        self.refresh()

    def on_right_click(self, event):
        self.complete()

    # -------------------- 按钮 --------------------
    def start_edit(self):
        if not self.session.start_edit():
            messagebox.showerror("Error", self.session.last_error or "Select an ROI file first.")
        self.refresh()

    def new_roi(self):
        if not self.session.draft_created:
            messagebox.showwarning("Warning", "Start editing first.")
            return
        roi_id = simpledialog.askstring("New ROI", "ROI id:", parent=self.root)
        if not roi_id:
            return
        self.session.begin_create(roi_id.strip())
        self.refresh()

    def update_selected(self):
        roi_id = self.editor.selected_roi_id
        if not self.session.draft_created or not roi_id:
            messagebox.showwarning("Warning", "Start editing and click an ROI first.")
            return
        self.session.begin_update(roi_id)
        self.refresh()

    def complete(self):
        if self.editor.edit_mode == EditMode.IDLE:
            return
        if not self.editor.can_complete():
            messagebox.showwarning("Incomplete Polygon", "At least 3 points are required to form an ROI.")
            return
        self.session.complete()
        self.refresh()

    def cancel(self):
        self.session.cancel_edit()
        self.refresh()

    def delete_selected(self):
        roi_id = self.editor.selected_roi_id
        if not self.session.draft_created or not roi_id:
            messagebox.showwarning("Warning", "Start editing and click an ROI first.")
            return
        if messagebox.askyesno("Delete ROI", f"Delete ROI '{roi_id}'?"):
            self.session.delete_roi(roi_id)
        self.refresh()

    def save_file(self):
        if self.session.save_file():
            messagebox.showinfo("Success", f"Saved {self.session.roi_file}.")
        elif self.session.last_error:
            messagebox.showerror("Save Failed", self.session.last_error)
        self.refresh()

    def end_edit(self):
        self.session.end_edit()
        self.refresh()

    def show_draft(self):
        summary = self.session.draft_summary()
        if not summary:
            messagebox.showinfo("Draft", self.session.last_error or "No draft in progress.")
            return
        lines = [f"{cctv_id}: {count} ROIs" for cctv_id, count in sorted(summary.items())]
        messagebox.showinfo("Draft", "\n".join(lines))


def build_store(args) -> RoiStore:
    if args.offline:
        logger.info("🔌 Offline mode: ROIs kept in memory")
        return LocalRoiStore(project_id=args.project, image_root=args.image_root)
    return RoiStoreClient(base_url=args.api_url, project_id=args.project)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Draw parking ROIs on a CCTV frame")
    parser.add_argument("--image", type=str, help="Frame path or URL, or an image name inside --folder")
    parser.add_argument("--folder", type=str, help="Test folder on the ROI store to fetch --image from")
    parser.add_argument("--roi-file", type=str, help="ROI file name, with or without .json")
    parser.add_argument("--image-root", type=str, help="Offline mode: directory holding test folders")
    parser.add_argument("--project", type=str, default=roi_editor_config.get_project_id(), help="Project id")
    parser.add_argument("--api-url", type=str, default=roi_editor_config.get_api_base_url(),
                        help="ROI service base URL")
    parser.add_argument("--offline", action="store_true", help="Use an in-memory ROI store")
    parser.add_argument("--canvas-size", type=int, default=roi_editor_config.get_canvas_size(),
                        help="Square canvas side in pixels")
    args = parser.parse_args()

    editor = PolygonEditor(editable=True, canvas_size=args.canvas_size)
    session = RoiWorkSession(build_store(args), editor)
    if args.roi_file:
        session.select_roi_file(args.roi_file)
    if args.image and args.folder:
        session.select_test_image(args.folder, args.image)
    elif args.image:
        session.select_image(args.image)

    root = tk.Tk()
    app = RoiDrawingApp(root, session)
    if args.folder:
        app.folder_box.set(args.folder)
        app.on_folder_selected(args.folder)
        if args.image:
            app.image_box.set(args.image)
    root.mainloop()
